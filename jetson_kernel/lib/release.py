from __future__ import annotations

import logging
import platform
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import VersionParseError

logger = logging.getLogger(__name__)

# "# R36 (release), REVISION: 4.3, GCID: 38968081, BOARD: generic, EABI: aarch64, DATE: ..."
_MAJOR_RE = re.compile(r"\bR(\d+)\b")
_MINOR_RE = re.compile(r"REVISION:\s*(\d+(?:\.\d+)*)")


@dataclass(frozen=True)
class VersionIdentifier:
    """L4T release as read from the board's release descriptor."""

    major: str
    minor: str

    def __str__(self) -> str:
        return f"R{self.major} (REVISION {self.minor})"


@dataclass(frozen=True)
class ArchiveBundle:
    """Remote source archive plus its optional checksum sidecar."""

    url: str
    file_name: str
    checksum_url: Optional[str] = None
    checksum_algorithm: str = "sha1"

    @property
    def checksum_file_name(self) -> Optional[str]:
        if not self.checksum_url:
            return None
        return self.checksum_url.rsplit("/", 1)[-1]


def parse_release_descriptor(text: str, *, source: str = "<release descriptor>") -> VersionIdentifier:
    major_m = _MAJOR_RE.search(text)
    minor_m = _MINOR_RE.search(text)
    major = major_m.group(1) if major_m else ""
    minor = minor_m.group(1) if minor_m else ""
    if not major or not minor:
        raise VersionParseError(
            f"Unexpected format in {source}: could not read L4T major/minor version "
            f"(major={major or '<missing>'}, minor={minor or '<missing>'})"
        )
    return VersionIdentifier(major=major, minor=minor)


def read_version(path: Path) -> VersionIdentifier:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise VersionParseError(f"Cannot read {path}: {e}") from e
    return parse_release_descriptor(text, source=str(path))


def source_url(version: VersionIdentifier, *, base_url: str, file_name: str) -> str:
    base = base_url.format(major=version.major, minor=version.minor).rstrip("/")
    return f"{base}/{file_name}"


def build_bundle(
    version: VersionIdentifier,
    *,
    base_url: str,
    file_name: str,
    checksum_suffix: Optional[str] = None,
    checksum_algorithm: str = "sha1",
) -> ArchiveBundle:
    url = source_url(version, base_url=base_url, file_name=file_name)
    return ArchiveBundle(
        url=url,
        file_name=file_name,
        checksum_url=f"{url}{checksum_suffix}" if checksum_suffix else None,
        checksum_algorithm=checksum_algorithm,
    )


def running_kernel_release() -> str:
    """Equivalent of ``uname -r``."""
    return platform.release()


def local_version_suffix(release: str) -> str:
    """``5.15.148-tegra`` -> ``-tegra``; a release without a hyphen has no suffix."""

    if "-" not in release:
        logger.warning("Kernel release %r has no local version part; using an empty suffix", release)
        return ""
    return "-" + release.split("-", 1)[1]
