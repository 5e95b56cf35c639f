from __future__ import annotations

import gzip
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)


def read_running_config(path: Path) -> str:
    """Decompress the running kernel's config snapshot (``/proc/config.gz``)."""
    with gzip.open(path, "rt", encoding="utf-8") as f:
        return f.read()


def set_config_str(text: str, key: str, value: str) -> str:
    """Set ``CONFIG_<key>="<value>"`` the way ``scripts/config --set-str`` does.

    An existing assignment or ``# CONFIG_<key> is not set`` line is replaced
    in place; otherwise the assignment is appended. Applying the same
    key/value twice yields the same text.
    """

    name = key if key.startswith("CONFIG_") else f"CONFIG_{key}"
    escaped = value.replace('"', '\\"')
    line = f'{name}="{escaped}"'

    pattern = re.compile(rf"^(?:{re.escape(name)}=.*|# {re.escape(name)} is not set)$", re.MULTILINE)
    if pattern.search(text):
        return pattern.sub(lambda _m: line, text, count=1)

    if text and not text.endswith("\n"):
        text += "\n"
    return text + line + "\n"
