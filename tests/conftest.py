"""
Shared test fixtures: fake privileged ops, fake HTTP session, archive builders.
"""

import gzip
import hashlib
import io
import logging
import shutil
import tarfile
from dataclasses import dataclass, field
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from jetson_kernel.errors import CommandError
from jetson_kernel.settings import DEFAULT_NESTED_ARCHIVES, Settings

RELEASE_TEXT = (
    "# R36 (release), REVISION: 4.3, GCID: 38968081, BOARD: generic, "
    "EABI: aarch64, DATE: Wed Jan  8 01:49:37 UTC 2025\n"
    "# KERNEL_VARIANT: oot\n"
)

BASE_URL = "https://example.test/l4t/r{major}_release_v{minor}/sources"
ARCHIVE_URL = "https://example.test/l4t/r36_release_v4.3/sources/public_sources.tbz2"
SIDECAR_URL = ARCHIVE_URL + ".sha1sum"

RUNNING_CONFIG = "CONFIG_ARM64=y\nCONFIG_LOCALVERSION=\"\"\n# CONFIG_DEBUG_INFO is not set\n"


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    root = logging.getLogger()
    for h in getattr(root, "_jetson_kernel_handlers", []):
        root.removeHandler(h)
        h.close()
    for attr in (
        "_jetson_kernel_configured",
        "_jetson_kernel_requested",
        "_jetson_kernel_log_path",
        "_jetson_kernel_handlers",
    ):
        if hasattr(root, attr):
            delattr(root, attr)


# ── Privileged operations ──────────────────────────────────────────


@dataclass
class FakeOps:
    """In-process stand-in for PrivilegedOps that records every call."""

    sudo: bool = False
    dry_run: bool = False
    calls: List[Tuple[str, ...]] = field(default_factory=list)

    def remove_tree(self, path: Path) -> None:
        self.calls.append(("remove_tree", str(path)))
        shutil.rmtree(path, ignore_errors=True)

    def move(self, src: Path, dst: Path) -> None:
        self.calls.append(("move", str(src), str(dst)))
        shutil.move(str(src), str(dst))

    def make_dirs(self, path: Path) -> None:
        self.calls.append(("make_dirs", str(path)))
        path.mkdir(parents=True, exist_ok=True)

    def extract_tar(self, archive: Path, dest: Path) -> None:
        self.calls.append(("extract_tar", str(archive), str(dest)))
        with tarfile.open(archive, "r:*") as tf:
            tf.extractall(dest)

    def write_text(self, path: Path, content: str) -> None:
        self.calls.append(("write_text", str(path)))
        path.write_text(content, encoding="utf-8")

    def copy_file(self, src: Path, dst: Path) -> None:
        self.calls.append(("copy_file", str(src), str(dst)))
        shutil.copyfile(src, dst)

    def remove_file(self, path: Path) -> None:
        self.calls.append(("remove_file", str(path)))
        path.unlink(missing_ok=True)

    def chown_to_user(self, path: Path) -> None:
        self.calls.append(("chown_to_user", str(path)))

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]


class FailingTarOps(FakeOps):
    """FakeOps whose privileged ``tar -xf`` exits non-zero."""

    def extract_tar(self, archive: Path, dest: Path) -> None:
        self.calls.append(("extract_tar", str(archive), str(dest)))
        raise CommandError(f"Command failed (2): tar -xf {archive} -C {dest}", returncode=2)


@pytest.fixture
def fake_ops() -> FakeOps:
    return FakeOps()


# ── HTTP ───────────────────────────────────────────────────────────


class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"", headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self._body = body
        self.headers = dict(headers or {})
        if status_code == 200:
            self.headers.setdefault("Content-Length", str(len(body)))

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self._body), chunk_size):
            yield self._body[i : i + chunk_size]

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class FakeSession:
    """Serves canned responses by URL; unknown URLs answer 404.

    A route carrying ``Last-Modified`` answers 304 to an ``If-Modified-Since``
    that is not older, like a real server.
    """

    def __init__(self, routes: Optional[Dict[str, FakeResponse]] = None):
        self.routes = dict(routes or {})
        self.requests: List[Tuple[str, Dict[str, str]]] = []
        self.heads: List[str] = []
        self.closed = False

    def get(self, url, headers=None, stream=False, timeout=None):
        headers = dict(headers or {})
        self.requests.append((url, headers))
        resp = self.routes.get(url) or FakeResponse(404)
        since = headers.get("If-Modified-Since")
        modified = resp.headers.get("Last-Modified")
        if resp.status_code == 200 and since and modified:
            if parsedate_to_datetime(since) >= parsedate_to_datetime(modified):
                return FakeResponse(304)
        return resp

    def head(self, url, allow_redirects=True, timeout=None):
        self.heads.append(url)
        resp = self.routes.get(url) or FakeResponse(404)
        return FakeResponse(resp.status_code, headers=resp.headers)

    def close(self) -> None:
        self.closed = True


# ── Archives ───────────────────────────────────────────────────────


def _add_bytes(tf: tarfile.TarFile, name: str, data: bytes) -> None:
    info = tarfile.TarInfo(name)
    info.size = len(data)
    tf.addfile(info, io.BytesIO(data))


def make_nested_tar(files: Dict[str, bytes], mode: str = "w:bz2") -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=mode) as tf:
        for name, data in files.items():
            _add_bytes(tf, name, data)
    return buf.getvalue()


def make_public_sources(extra_members: Optional[Dict[str, bytes]] = None, nested_mode: str = "w:bz2") -> bytes:
    """Top-level archive laid out like NVIDIA's public_sources.tbz2."""

    nested = {
        "kernel_src.tbz2": make_nested_tar(
            {
                "kernel/kernel-jammy-src/Makefile": b"VERSION = 5\n",
                "kernel/kernel-jammy-src/scripts/config": b"#!/bin/sh\n",
            },
            nested_mode,
        ),
        "kernel_oot_modules_src.tbz2": make_nested_tar({"nvidia-oot/Makefile": b"obj-m += x.o\n"}, nested_mode),
        "nvidia_kernel_display_driver_source.tbz2": make_nested_tar(
            {"nvdisplay/README": b"display\n"}, nested_mode
        ),
    }
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:bz2") as tf:
        for name, data in nested.items():
            _add_bytes(tf, f"Linux_for_Tegra/source/{name}", data)
        _add_bytes(tf, "Linux_for_Tegra/source/u-boot_src.tbz2", b"ignored")
        for name, data in (extra_members or {}).items():
            _add_bytes(tf, name, data)
    return buf.getvalue()


def sha1_sidecar(data: bytes, name: str = "public_sources.tbz2") -> bytes:
    return f"{hashlib.sha1(data).hexdigest()}  {name}\n".encode()


# ── Board layout ───────────────────────────────────────────────────


@dataclass
class Board:
    root: Path
    settings: Settings

    @property
    def target(self) -> Path:
        return self.settings.installation_target


@pytest.fixture
def board(tmp_path: Path) -> Board:
    """A fake Jetson filesystem: release file, /proc/config.gz, /usr/src, work dir."""

    etc = tmp_path / "etc"
    etc.mkdir()
    (etc / "nv_tegra_release").write_text(RELEASE_TEXT)

    proc = tmp_path / "proc"
    proc.mkdir()
    with gzip.open(proc / "config.gz", "wt") as f:
        f.write(RUNNING_CONFIG)

    src = tmp_path / "usr" / "src"
    src.mkdir(parents=True)
    work = tmp_path / "work"
    work.mkdir()

    settings = Settings(
        raw={
            "source_dir": str(src),
            "work_dir": str(work),
            "logs_dir": str(tmp_path / "logs"),
            "release_file": str(etc / "nv_tegra_release"),
            "proc_config": str(proc / "config.gz"),
            "base_url": BASE_URL,
            "nested_archives": list(DEFAULT_NESTED_ARCHIVES),
        }
    )
    return Board(root=tmp_path, settings=settings)
