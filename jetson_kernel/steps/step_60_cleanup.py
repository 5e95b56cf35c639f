from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from ..context import AcquireContext

logger = logging.getLogger(__name__)


class CleanupStep:
    step_id = "60_cleanup"

    def run(self, ctx: AcquireContext) -> None:
        leftovers: List[Optional[Path]] = [*ctx.nested, ctx.archive_path, ctx.checksum_path]
        logger.info("Cleaning up downloaded archives in %s", ctx.settings.work_dir)
        for p in leftovers:
            if p is None:
                continue
            try:
                p.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove %s: %s", p, e)
