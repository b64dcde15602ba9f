"""ArchiveStore — content-addressed source and binary snapshots.

Archives are keyed by commit identity (plus build mode for binaries) and are
permanent once written: the existence of the file doubles as the build cache.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from sourcekeeper.archives.packager import create_archive
from sourcekeeper.config import (
    ARCHIVE_SUFFIX,
    ARCHIVES_DIR,
    BINARIES_DIR,
    PROFILING_SUFFIX,
)
from sourcekeeper.errors import ArchiveNotFoundError

logger = logging.getLogger(__name__)


class ArchiveKind(str, enum.Enum):
    SOURCE = "source"
    BINARY = "binary"


class ArchiveKey(BaseModel):
    """Identity of one archive.  ``profiling`` only applies to binaries."""

    model_config = ConfigDict(frozen=True)

    commit_hash: str
    kind: ArchiveKind
    profiling: bool = False

    @classmethod
    def source(cls, commit_hash: str) -> ArchiveKey:
        return cls(commit_hash=commit_hash, kind=ArchiveKind.SOURCE)

    @classmethod
    def binary(cls, commit_hash: str, profiling: bool = False) -> ArchiveKey:
        return cls(commit_hash=commit_hash, kind=ArchiveKind.BINARY, profiling=profiling)

    @property
    def file_name(self) -> str:
        stem = self.commit_hash
        if self.kind is ArchiveKind.BINARY and self.profiling:
            stem += PROFILING_SUFFIX
        return stem + ARCHIVE_SUFFIX


class ArchiveStore:
    """Filesystem bookkeeping for archives under a managed root.

    Parameters
    ----------
    root:
        Data root; source archives go to ``<root>/archives`` and binary
        archives to ``<root>/binaries``.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _directory(self, kind: ArchiveKind) -> Path:
        name = ARCHIVES_DIR if kind is ArchiveKind.SOURCE else BINARIES_DIR
        directory = self.root / name
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def path(self, key: ArchiveKey) -> Path:
        """Return the archive path for *key*, creating its directory if needed."""
        return self._directory(key.kind) / key.file_name

    def exists(self, key: ArchiveKey) -> bool:
        return self.path(key).is_file()

    def create(
        self,
        source_dir: str | Path,
        destination: str | Path,
        *,
        exclude: Iterable[str] = (),
    ) -> Path:
        """Package *source_dir* into *destination*."""
        return create_archive(source_dir, destination, exclude=exclude)

    def read(self, key: ArchiveKey) -> bytes:
        """Return the archive bytes for *key*."""
        path = self.path(key)
        if not path.is_file():
            raise ArchiveNotFoundError(
                f"{key.kind.value} archive for {key.commit_hash} does not exist; "
                "create it first"
            )
        return path.read_bytes()
