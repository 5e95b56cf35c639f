from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import requests

from .lib.privileged import PrivilegedOps
from .lib.release import ArchiveBundle, VersionIdentifier
from .settings import Settings


class ConflictPolicy(enum.Enum):
    KEEP = "keep"
    REPLACE = "replace"
    BACKUP = "backup"


PolicyResolver = Callable[[Path], ConflictPolicy]


@dataclass
class AcquireContext:
    """Everything one source-acquisition run reads and produces.

    Inputs are fixed at construction; the fields below ``done`` are filled
    in by the steps in order.
    """

    settings: Settings
    ops: PrivilegedOps
    resolve_policy: PolicyResolver
    session: requests.Session
    now: Callable[[], datetime] = datetime.now

    # Set by a step to end the run early as a success.
    done: bool = False

    version: Optional[VersionIdentifier] = None
    bundle: Optional[ArchiveBundle] = None
    policy: Optional[ConflictPolicy] = None
    backup_path: Optional[Path] = None
    archive_path: Optional[Path] = None
    checksum_path: Optional[Path] = None
    digest: Optional[str] = None
    nested: List[Path] = field(default_factory=list)
