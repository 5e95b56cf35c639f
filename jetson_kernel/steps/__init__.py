from .step_10_resolve_version import ResolveVersionStep
from .step_20_resolve_conflict import ResolveConflictStep
from .step_30_download import DownloadStep
from .step_40_verify_checksum import VerifyChecksumStep
from .step_50_extract import ExtractStep
from .step_60_cleanup import CleanupStep
from .step_70_seed_config import SeedConfigStep

__all__ = [
    "ResolveVersionStep",
    "ResolveConflictStep",
    "DownloadStep",
    "VerifyChecksumStep",
    "ExtractStep",
    "CleanupStep",
    "SeedConfigStep",
]
