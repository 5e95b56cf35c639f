from __future__ import annotations

import logging
import shutil
import tarfile
from pathlib import Path
from typing import Dict, List, Sequence

from ..errors import ExtractionError

logger = logging.getLogger(__name__)


def extract_members(archive: Path, *, prefix: str, names: Sequence[str], dest: Path) -> List[Path]:
    """Pull ``<prefix>/<name>`` for each name out of ``archive`` into ``dest``.

    Only the named members are written; the prefix is stripped, like
    ``tar -xf archive <members...> --strip-components=N``. The archive is
    read front to back once, so a compressed stream is never rewound.
    Results follow the order of ``names``.
    """

    wanted: Dict[str, str] = {(f"{prefix}/{name}" if prefix else name): name for name in names}
    found: Dict[str, Path] = {}

    dest.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(archive, mode="r|*") as tf:
            for member in tf:
                name = wanted.get(member.name)
                if name is None:
                    continue
                if not member.isfile():
                    raise ExtractionError(f"{member.name} in {archive.name} is not a regular file")

                src = tf.extractfile(member)
                if src is None:
                    raise ExtractionError(f"Cannot read {member.name} from {archive.name}")
                target = dest / Path(name).name
                logger.info("Extracting %s", member.name)
                with src, target.open("wb") as f:
                    shutil.copyfileobj(src, f)
                found[name] = target
                if len(found) == len(wanted):
                    break
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ExtractionError(f"Failed to extract {archive}: {e}") from e

    missing = [m for m, n in wanted.items() if n not in found]
    if missing:
        raise ExtractionError(f"{archive.name} has no member {', '.join(missing)}")
    return [found[n] for n in names]
