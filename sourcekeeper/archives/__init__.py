"""Content-addressed archive storage."""

from sourcekeeper.archives.packager import create_archive
from sourcekeeper.archives.store import ArchiveKey, ArchiveKind, ArchiveStore

__all__ = [
    "ArchiveKey",
    "ArchiveKind",
    "ArchiveStore",
    "create_archive",
]
