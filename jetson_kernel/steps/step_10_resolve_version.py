from __future__ import annotations

import logging

from ..context import AcquireContext
from ..lib.release import build_bundle, read_version

logger = logging.getLogger(__name__)


class ResolveVersionStep:
    step_id = "10_resolve_version"

    def run(self, ctx: AcquireContext) -> None:
        s = ctx.settings
        version = read_version(s.release_file)
        bundle = build_bundle(
            version,
            base_url=s.base_url,
            file_name=s.source_file,
            checksum_suffix=s.checksum_suffix if s.checksum_enabled else None,
            checksum_algorithm=s.checksum_algorithm,
        )
        ctx.version = version
        ctx.bundle = bundle

        logger.info("Detected L4T version: %s (%s)", version.major, version.minor)
        logger.info("Kernel sources directory: %s", s.source_dir)
