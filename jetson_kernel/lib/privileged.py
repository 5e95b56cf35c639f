from __future__ import annotations

import getpass
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ..errors import CommandError, PrivilegeError
from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrivilegedOps:
    """Capability for filesystem operations that need elevated access.

    Holding an instance is the proof that privileges were checked; nothing
    else in the package shells out with ``sudo``. Each operation logs what
    it is about to do before doing it.
    """

    sudo: bool = True
    dry_run: bool = False

    def _run(self, argv: Sequence[str], *, input_text: str | None = None) -> CmdResult:
        prefix = ["sudo"] if self.sudo else []
        return run_cmd([*prefix, *argv], input_text=input_text, dry_run=self.dry_run)

    def remove_tree(self, path: Path) -> None:
        logger.info("Deleting %s", path)
        self._run(["rm", "-rf", str(path)])

    def move(self, src: Path, dst: Path) -> None:
        logger.info("Moving %s -> %s", src, dst)
        self._run(["mv", str(src), str(dst)])

    def make_dirs(self, path: Path) -> None:
        self._run(["mkdir", "-p", str(path)])

    def extract_tar(self, archive: Path, dest: Path) -> None:
        logger.info("Extracting %s into %s", archive.name, dest)
        self._run(["tar", "-xf", str(archive), "-C", str(dest)])

    def write_text(self, path: Path, content: str) -> None:
        logger.info("Writing %s (%d bytes)", path, len(content.encode("utf-8")))
        self._run(["tee", str(path)], input_text=content)

    def copy_file(self, src: Path, dst: Path) -> None:
        logger.info("Copying %s -> %s", src, dst)
        self._run(["cp", str(src), str(dst)])

    def remove_file(self, path: Path) -> None:
        logger.info("Deleting %s", path)
        self._run(["rm", "-f", str(path)])

    def chown_to_user(self, path: Path) -> None:
        user = invoking_user()
        self._run(["chown", f"{user}:{user}", str(path)])


def invoking_user() -> str:
    return os.environ.get("SUDO_USER") or getpass.getuser()


def require_privileges(*, dry_run: bool = False) -> PrivilegedOps:
    """Return the elevated-operations capability or raise PrivilegeError.

    Root runs commands directly; anyone else must be able to refresh
    ``sudo`` credentials, and every operation is then prefixed with sudo.
    """

    if os.geteuid() == 0:
        return PrivilegedOps(sudo=False, dry_run=dry_run)

    if dry_run:
        logger.info("Dry run: skipping sudo credential check")
        return PrivilegedOps(sudo=True, dry_run=True)

    try:
        r = run_cmd(["sudo", "-v"], check=False)
    except CommandError as e:
        raise PrivilegeError(f"sudo is not available: {e}") from e
    if r.returncode != 0:
        raise PrivilegeError("This command requires sudo privileges. Please run with sudo access.")
    return PrivilegedOps(sudo=True, dry_run=dry_run)
