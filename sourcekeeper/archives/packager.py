"""Directory packaging into gzip tarballs."""

from __future__ import annotations

import logging
import os
import tarfile
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def create_archive(
    source_dir: str | Path,
    destination: str | Path,
    *,
    exclude: Iterable[str] = (),
) -> Path:
    """Package *source_dir* into a ``.tar.gz`` at *destination*.

    Parameters
    ----------
    source_dir:
        Directory whose contents are archived; members are stored relative
        to it.
    destination:
        Archive path.  Written to a temporary sibling first and renamed into
        place, so the final path only ever holds a complete archive.
    exclude:
        File or directory names skipped wherever they appear in the tree.

    Returns the path to the created archive.
    """
    root = Path(source_dir).resolve()
    out = Path(destination)
    if not root.is_dir():
        raise FileNotFoundError(f"Source folder not found: {root}")
    out.parent.mkdir(parents=True, exist_ok=True)
    excluded = set(exclude)

    tmp = out.with_name(f".{out.name}.partial")
    count = 0
    try:
        with tarfile.open(tmp, "w:gz") as tar:
            for fpath in sorted(root.rglob("*")):
                rel = fpath.relative_to(root)
                if excluded.intersection(rel.parts):
                    continue
                tar.add(fpath, arcname=rel.as_posix(), recursive=False)
                count += 1
        os.replace(tmp, out)
    finally:
        tmp.unlink(missing_ok=True)

    logger.info("Archive created: %s (%d entries)", out, count)
    return out
