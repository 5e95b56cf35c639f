from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from ..errors import ChecksumMismatchError

logger = logging.getLogger(__name__)


def file_digest(path: Path, algorithm: str = "sha1", *, chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.new(algorithm)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


def expected_from_sidecar(text: str) -> str:
    """First whitespace-delimited token of a ``sha1sum``-style sidecar."""
    parts = text.split()
    return parts[0] if parts else ""


def verify_file(path: Path, sidecar: Path, algorithm: str = "sha1") -> str:
    """Check ``path`` against ``sidecar``; return the digest or raise.

    The archive is left in place on mismatch so it can be inspected.
    """

    expected = expected_from_sidecar(sidecar.read_text(encoding="utf-8", errors="replace"))
    actual = file_digest(path, algorithm)
    if not expected or expected.lower() != actual.lower():
        raise ChecksumMismatchError(str(path), expected, actual)
    logger.info("%s %s: OK", algorithm.upper(), path.name)
    return actual
