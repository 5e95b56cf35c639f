from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..context import AcquireContext, ConflictPolicy
from ..errors import BackupCollisionError, UsageError

logger = logging.getLogger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def policy_from_flags(*, force_replace: bool, force_backup: bool) -> Optional[ConflictPolicy]:
    """Map the CLI force flags to a policy; None means ask interactively."""

    if force_replace and force_backup:
        raise UsageError("--force-replace and --force-backup are mutually exclusive")
    if force_replace:
        return ConflictPolicy.REPLACE
    if force_backup:
        return ConflictPolicy.BACKUP
    return None


def parse_policy_choice(answer: str) -> ConflictPolicy:
    a = answer.strip().lower()
    if a.startswith("r"):
        return ConflictPolicy.REPLACE
    if a.startswith("b"):
        return ConflictPolicy.BACKUP
    return ConflictPolicy.KEEP


def prompt_conflict_policy(existing: Path) -> ConflictPolicy:
    """Ask on the terminal what to do with an existing source tree."""

    print(f"Kernel sources already exist at {existing}.")
    print("What would you like to do?")
    print("[K]eep existing sources (default)")
    print("[R]eplace (delete and re-download)")
    print("[B]ackup and download fresh sources")
    try:
        answer = input("Enter your choice (K/R/B): ")
    except EOFError:
        answer = ""
    return parse_policy_choice(answer)


def backup_path_for(target: Path, when: datetime) -> Path:
    return target.with_name(f"{target.name}_backup_{when.strftime(BACKUP_TIMESTAMP_FORMAT)}")


class ResolveConflictStep:
    step_id = "20_resolve_conflict"

    def run(self, ctx: AcquireContext) -> None:
        target = ctx.settings.installation_target
        if not target.is_dir():
            logger.info("No existing kernel sources at %s", target)
            return

        policy = ctx.resolve_policy(target)
        ctx.policy = policy

        if policy is ConflictPolicy.REPLACE:
            logger.info("Deleting existing kernel sources at %s", target)
            ctx.ops.remove_tree(target)
        elif policy is ConflictPolicy.BACKUP:
            backup = backup_path_for(target, ctx.now())
            if backup.exists():
                raise BackupCollisionError(f"Backup destination already exists: {backup}")
            logger.info("Backing up existing kernel sources to %s", backup)
            ctx.ops.move(target, backup)
            ctx.backup_path = backup
        else:
            logger.info("Keeping existing kernel sources. Skipping download.")
            ctx.done = True
