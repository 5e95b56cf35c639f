from __future__ import annotations

import logging

from ..context import AcquireContext
from ..errors import CommandError, ExtractionError
from ..lib.archive import extract_members

logger = logging.getLogger(__name__)

# Log label per nested archive; unknown names fall back to the file name.
_LABELS = {
    "kernel_src.tbz2": "kernel source",
    "kernel_oot_modules_src.tbz2": "NVIDIA out-of-tree kernel modules",
    "nvidia_kernel_display_driver_source.tbz2": "NVIDIA display driver source",
}


class ExtractStep:
    step_id = "50_extract"

    def run(self, ctx: AcquireContext) -> None:
        if ctx.archive_path is None:
            raise RuntimeError("archive path missing; run download first")

        s = ctx.settings
        logger.info("Extracting sources...")
        ctx.nested = extract_members(
            ctx.archive_path,
            prefix=s.archive_prefix,
            names=s.nested_archives,
            dest=s.work_dir,
        )

        for nested in ctx.nested:
            logger.info("Extracting %s...", _LABELS.get(nested.name, nested.name))
            try:
                ctx.ops.extract_tar(nested, s.source_dir)
            except CommandError as e:
                raise ExtractionError(f"Failed to extract {nested.name} into {s.source_dir}: {e}") from e

        logger.info("Kernel sources and modules extracted to %s", s.source_dir)
