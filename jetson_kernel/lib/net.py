from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from email.utils import formatdate, parsedate_to_datetime
from pathlib import Path
from typing import Optional

import requests

from ..errors import DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536

USER_AGENT = "jetson-kernel-tools/0.1"


@dataclass(frozen=True)
class FetchResult:
    path: Path
    downloaded: bool
    bytes_written: int = 0


def new_session() -> requests.Session:
    s = requests.Session()
    s.headers.update({"User-Agent": USER_AGENT})
    return s


def _apply_last_modified(path: Path, header: Optional[str]) -> None:
    if not header:
        return
    try:
        ts = parsedate_to_datetime(header).timestamp()
    except (TypeError, ValueError):
        logger.debug("Ignoring unparsable Last-Modified: %r", header)
        return
    os.utime(path, (ts, ts))


def remote_size(session: requests.Session, url: str, *, timeout_s: float = 60.0) -> Optional[int]:
    """Content-Length from a HEAD request, or None when the server won't say."""

    try:
        resp = session.head(url, allow_redirects=True, timeout=timeout_s)
    except requests.RequestException as e:
        logger.debug("HEAD %s failed: %s", url, e)
        return None
    with resp:
        if resp.status_code >= 400:
            return None
        try:
            return int(resp.headers.get("Content-Length"))
        except (TypeError, ValueError):
            return None


def fetch(
    session: requests.Session,
    url: str,
    dest: Path,
    *,
    timeout_s: float = 60.0,
) -> FetchResult:
    """GET ``url`` into ``dest`` unless the local copy is already up to date.

    Mirrors ``wget -N``: a local file whose size differs from the remote
    Content-Length is fetched again unconditionally; otherwise it is offered
    to the server through ``If-Modified-Since`` and a 304 keeps it. New
    content is streamed into a ``.part`` file and renamed over ``dest`` only
    once complete.
    """

    headers = {}
    if dest.exists():
        local = dest.stat()
        size = remote_size(session, url, timeout_s=timeout_s)
        if size is not None and size != local.st_size:
            logger.info("Size of %s differs from remote (%d != %d), retrieving", dest.name, local.st_size, size)
        else:
            headers["If-Modified-Since"] = formatdate(local.st_mtime, usegmt=True)

    try:
        resp = session.get(url, headers=headers, stream=True, timeout=timeout_s)
    except requests.RequestException as e:
        raise DownloadError(f"Download failed for {url}: {e}") from e

    with resp:
        if resp.status_code == 304:
            logger.info("%s is up to date, not retrieving", dest.name)
            return FetchResult(path=dest, downloaded=False)

        if resp.status_code >= 400:
            raise DownloadError(f"Download failed for {url}: HTTP {resp.status_code}", status_code=resp.status_code)

        size = resp.headers.get("Content-Length")
        logger.info("Downloading %s (%s bytes)", url, size or "unknown")

        part = dest.with_name(dest.name + ".part")
        written = 0
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with part.open("wb") as f:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    f.write(chunk)
                    written += len(chunk)
        except requests.RequestException as e:
            part.unlink(missing_ok=True)
            raise DownloadError(f"Download interrupted for {url}: {e}") from e
        except OSError as e:
            part.unlink(missing_ok=True)
            raise DownloadError(f"Cannot write {part}: {e}") from e

        os.replace(part, dest)
        _apply_last_modified(dest, resp.headers.get("Last-Modified"))

    logger.info("Saved %s (%d bytes)", dest, written)
    return FetchResult(path=dest, downloaded=True, bytes_written=written)


def fetch_optional(
    session: requests.Session,
    url: str,
    dest: Path,
    *,
    timeout_s: float = 60.0,
) -> Optional[FetchResult]:
    """Like fetch(), but a 404 means "not published" and returns None."""

    try:
        return fetch(session, url, dest, timeout_s=timeout_s)
    except DownloadError as e:
        if e.status_code == 404:
            logger.warning("No checksum published at %s; skipping verification", url)
            return None
        raise
