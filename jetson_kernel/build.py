from __future__ import annotations

import logging
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .cli import ArgParser, report_usage_error
from .errors import BuildError, JetsonKernelError, UsageError
from .lib.command import stream_cmd
from .lib.privileged import PrivilegedOps, require_privileges
from .logging_utils import DEFAULT_LOGS_DIR, configure_logging, default_log_path

logger = logging.getLogger(__name__)

RUN_TYPE = "make_kernel"
DEFAULT_SOURCE_TARGET = "/usr/src"
KERNEL_TREE = "kernel/kernel-jammy-src"
IMAGE_REL = "arch/arm64/boot/Image"


@dataclass(frozen=True)
class BuildCtx:
    source_target: Path
    ops: PrivilegedOps

    @property
    def make_dir(self) -> Path:
        return self.source_target / KERNEL_TREE

    @property
    def logs_dir(self) -> Path:
        return self.make_dir / "logs"

    @property
    def log_file(self) -> Path:
        return self.logs_dir / "kernel_build.log"

    @property
    def image_path(self) -> Path:
        return self.make_dir / IMAGE_REL


def job_count(cpus: Optional[int] = None) -> int:
    """Leave one CPU free for the rest of the system."""
    n = cpus if cpus is not None else (os.cpu_count() or 1)
    return n - 1 if n > 1 else 1


def _make(ctx: BuildCtx, make_args: list[str], *, append: bool) -> int:
    prefix = ["sudo"] if ctx.ops.sudo else []
    if ctx.ops.dry_run:
        return stream_cmd([*prefix, "make", *make_args], tee=sys.stdout, dry_run=True)
    with ctx.log_file.open("a" if append else "w", encoding="utf-8") as tee:
        return stream_cmd([*prefix, "make", *make_args], tee=tee, cwd=str(ctx.make_dir))


def build_kernel(ctx: BuildCtx, *, jobs: Optional[int] = None) -> Path:
    """Build ``Image`` in the kernel tree; returns the path of the new Image."""

    logger.info("Proposed source path: %s", ctx.make_dir)
    if not ctx.make_dir.is_dir():
        raise BuildError(f"Cannot find kernel source! Expected at: {ctx.make_dir}. Please install the kernel source and retry.")

    ctx.ops.make_dirs(ctx.logs_dir)
    ctx.ops.chown_to_user(ctx.logs_dir)

    logger.info("Building kernel in: %s", ctx.make_dir)

    if ctx.image_path.is_file():
        logger.info("Removing old kernel Image file...")
        ctx.ops.remove_file(ctx.image_path)

    j = jobs or job_count()
    started = time.monotonic()
    rc = _make(ctx, [f"-j{j}", "Image"], append=False)
    if rc != 0:
        logger.warning("Make failed (%d). Retrying with single-threaded build...", rc)
        rc = _make(ctx, ["Image"], append=True)
        if rc != 0:
            raise BuildError(
                f"Make failed again. Check {ctx.log_file} for details. Possible causes: missing "
                "dependencies, out-of-memory errors, or incorrect kernel configuration."
            )
    logger.info("Build finished in %.1fs", time.monotonic() - started)

    if not ctx.ops.dry_run and not ctx.image_path.is_file():
        raise BuildError(f"Kernel Image was not generated. Check {ctx.log_file} for details.")

    logger.info("Kernel Image is located at: %s", ctx.image_path)
    logger.info("Build logs are saved in: %s", ctx.log_file)
    return ctx.image_path


def main(argv: Optional[list[str]] = None) -> int:
    p = ArgParser(prog="make-kernel", description="Build the kernel Image on an NVIDIA Jetson Developer Kit.")
    p.add_argument("-d", "--directory", default=DEFAULT_SOURCE_TARGET, help="Directory path to parent of kernel source")
    p.add_argument("-j", "--jobs", type=int, default=None, help="Parallel make jobs (default: CPUs - 1)")
    p.add_argument("--dry-run", action="store_true", help="Log commands without running them")
    p.add_argument("--logs-dir", default=DEFAULT_LOGS_DIR, help="Directory for the run log")

    try:
        args = p.parse_args(argv)
    except UsageError as e:
        return report_usage_error(p, e)

    configure_logging(default_log_path(RUN_TYPE, args.logs_dir))

    try:
        ops = require_privileges(dry_run=bool(args.dry_run))
        build_kernel(BuildCtx(source_target=Path(args.directory), ops=ops), jobs=args.jobs)
    except JetsonKernelError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
