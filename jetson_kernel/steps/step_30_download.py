from __future__ import annotations

import logging

from ..context import AcquireContext
from ..lib.net import fetch, fetch_optional

logger = logging.getLogger(__name__)


class DownloadStep:
    step_id = "30_download"

    def run(self, ctx: AcquireContext) -> None:
        bundle = ctx.bundle
        if bundle is None:
            raise RuntimeError("archive bundle missing; run version resolution first")

        s = ctx.settings
        work_dir = s.work_dir

        if s.dry_run:
            logger.info("Would download %s into %s", bundle.url, work_dir)
            ctx.done = True
            return

        logger.info("Downloading kernel sources from: %s", bundle.url)
        archive = fetch(ctx.session, bundle.url, work_dir / bundle.file_name, timeout_s=s.timeout_s)
        ctx.archive_path = archive.path

        if bundle.checksum_url and bundle.checksum_file_name:
            sidecar = fetch_optional(
                ctx.session,
                bundle.checksum_url,
                work_dir / bundle.checksum_file_name,
                timeout_s=s.timeout_s,
            )
            ctx.checksum_path = sidecar.path if sidecar else None
