from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

DEFAULT_BASE_URL = "https://developer.nvidia.com/embedded/l4t/r{major}_release_v{minor}/sources"
DEFAULT_SOURCE_FILE = "public_sources.tbz2"
DEFAULT_ARCHIVE_PREFIX = "Linux_for_Tegra/source"
DEFAULT_NESTED_ARCHIVES = [
    "kernel_src.tbz2",
    "kernel_oot_modules_src.tbz2",
    "nvidia_kernel_display_driver_source.tbz2",
]


@dataclass(frozen=True)
class Settings:
    """Typed view over a raw settings mapping (YAML file or defaults).

    Relative paths (``work_dir``, ``logs_dir``) resolve against the current
    working directory, not the location of the installed entry point.
    """

    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def source_dir(self) -> Path:
        return Path(str(self.raw.get("source_dir") or "/usr/src"))

    @property
    def installation_target(self) -> Path:
        # The tree that triggers conflict resolution.
        return self.source_dir / "kernel"

    @property
    def work_dir(self) -> Path:
        return Path(str(self.raw.get("work_dir") or "."))

    @property
    def logs_dir(self) -> str:
        return str(self.raw.get("logs_dir") or "logs")

    @property
    def release_file(self) -> Path:
        return Path(str(self.raw.get("release_file") or "/etc/nv_tegra_release"))

    @property
    def proc_config(self) -> Path:
        return Path(str(self.raw.get("proc_config") or "/proc/config.gz"))

    @property
    def base_url(self) -> str:
        return str(self.raw.get("base_url") or DEFAULT_BASE_URL)

    @property
    def source_file(self) -> str:
        return str(self.raw.get("source_file") or DEFAULT_SOURCE_FILE)

    @property
    def archive_prefix(self) -> str:
        return str(self.raw.get("archive_prefix") or DEFAULT_ARCHIVE_PREFIX).strip("/")

    @property
    def nested_archives(self) -> List[str]:
        return list(self.raw.get("nested_archives") or DEFAULT_NESTED_ARCHIVES)

    @property
    def kernel_tree(self) -> Path:
        return self.source_dir / str(self.raw.get("kernel_tree") or "kernel/kernel-jammy-src")

    def checksum_section(self) -> Dict[str, Any]:
        """``checksum:`` as a mapping; a bare ``true``/``false`` means ``enabled``."""
        section = self.raw.get("checksum")
        if section is None:
            return {}
        if isinstance(section, bool):
            return {"enabled": section}
        if not isinstance(section, dict):
            raise ConfigError(f"checksum must be a mapping or true/false, got {section!r}")
        return section

    @property
    def checksum_enabled(self) -> bool:
        return bool(self.checksum_section().get("enabled", True))

    @property
    def checksum_algorithm(self) -> str:
        return str(self.checksum_section().get("algorithm") or "sha1")

    @property
    def checksum_suffix(self) -> str:
        return str(self.checksum_section().get("suffix") or f".{self.checksum_algorithm}sum")

    @property
    def set_localversion(self) -> bool:
        return bool(self.raw.get("set_localversion", True))

    @property
    def dry_run(self) -> bool:
        return bool(self.raw.get("dry_run", False))

    @property
    def timeout_s(self) -> float:
        return float(self.raw.get("timeout_s") or 60.0)


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from a YAML file; no path means built-in defaults."""

    if path is None:
        return Settings()

    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {path}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError(f"Config file must be YAML: {path}")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must contain a mapping/object: {path}")

    settings = Settings(raw=raw)
    settings.checksum_section()
    return settings
