from __future__ import annotations

import logging
import os

from ..context import AcquireContext
from ..errors import ChecksumMismatchError
from ..lib.checksum import verify_file

logger = logging.getLogger(__name__)


class VerifyChecksumStep:
    step_id = "40_verify_checksum"

    def run(self, ctx: AcquireContext) -> None:
        if ctx.archive_path is None:
            raise RuntimeError("archive path missing; run download first")

        if ctx.checksum_path is None:
            logger.info("No checksum available for %s; skipping verification", ctx.archive_path.name)
            return

        algorithm = ctx.bundle.checksum_algorithm if ctx.bundle else "sha1"
        logger.info("Verifying %s with %s", ctx.archive_path.name, ctx.checksum_path.name)
        try:
            ctx.digest = verify_file(ctx.archive_path, ctx.checksum_path, algorithm)
        except ChecksumMismatchError:
            # Kept for inspection, but dated to the epoch so the next run's
            # If-Modified-Since fetches it again.
            os.utime(ctx.archive_path, (0, 0))
            logger.warning("Marked %s stale; it will be downloaded again on the next run", ctx.archive_path.name)
            raise
