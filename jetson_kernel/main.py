from __future__ import annotations

import logging
import sys
from typing import Optional

import requests

from .cli import ArgParser, report_usage_error
from .context import AcquireContext, ConflictPolicy, PolicyResolver
from .errors import JetsonKernelError, UsageError
from .lib.net import new_session
from .lib.privileged import PrivilegedOps, require_privileges
from .logging_utils import configure_logging, default_log_path
from .pipeline import PipelineResult, run_pipeline
from .settings import Settings, load_settings
from .steps import (
    CleanupStep,
    DownloadStep,
    ExtractStep,
    ResolveConflictStep,
    ResolveVersionStep,
    SeedConfigStep,
    VerifyChecksumStep,
)
from .steps.step_20_resolve_conflict import policy_from_flags, prompt_conflict_policy

logger = logging.getLogger(__name__)

RUN_TYPE = "get_kernel_sources"


def build_steps():
    return [
        ResolveVersionStep(),
        ResolveConflictStep(),
        DownloadStep(),
        VerifyChecksumStep(),
        ExtractStep(),
        CleanupStep(),
        SeedConfigStep(),
    ]


def fixed_policy(policy: ConflictPolicy) -> PolicyResolver:
    return lambda _existing: policy


def run(
    *,
    settings: Settings,
    ops: PrivilegedOps,
    resolve_policy: PolicyResolver,
    session: Optional[requests.Session] = None,
) -> PipelineResult:
    """Acquire, verify, extract and configure the kernel sources."""

    ctx = AcquireContext(
        settings=settings,
        ops=ops,
        resolve_policy=resolve_policy,
        session=session or new_session(),
    )
    try:
        return run_pipeline(ctx=ctx, steps=build_steps())
    finally:
        ctx.session.close()


def _parser() -> ArgParser:
    p = ArgParser(prog="get-kernel-sources", description="Download and prepare Jetson Linux kernel sources.")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--force-replace", action="store_true", help="Delete existing sources without asking")
    group.add_argument("--force-backup", action="store_true", help="Back up existing sources without asking")
    p.add_argument("--config", default=None, help="YAML settings file")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    p = _parser()
    try:
        args = p.parse_args(argv)
        forced = policy_from_flags(force_replace=args.force_replace, force_backup=args.force_backup)
    except UsageError as e:
        return report_usage_error(p, e)

    try:
        settings = load_settings(args.config)
    except JetsonKernelError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    configure_logging(default_log_path(RUN_TYPE, settings.logs_dir))

    try:
        ops = require_privileges(dry_run=settings.dry_run)
        result = run(
            settings=settings,
            ops=ops,
            resolve_policy=fixed_policy(forced) if forced else prompt_conflict_policy,
        )
    except JetsonKernelError as e:
        logger.error("%s", e)
        return 1

    logger.debug("Ran steps: %s", ", ".join(result.ran_steps))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
