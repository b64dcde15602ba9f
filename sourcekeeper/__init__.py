"""sourcekeeper — shared working tree, commit history, and build archives."""

__version__ = "1.0.0"

from sourcekeeper.archives.store import ArchiveKey, ArchiveKind, ArchiveStore
from sourcekeeper.build.pipeline import BuildPipeline
from sourcekeeper.build.progress import ProgressStream
from sourcekeeper.errors import (
    ArchiveNotFoundError,
    ConfigurationError,
    GitLogOutOfBoundsError,
    NotFoundError,
    ParseError,
    SourcesError,
    ToolInvocationError,
)
from sourcekeeper.manager import SourcesManager
from sourcekeeper.settings import Settings, configure_logging, load_settings
from sourcekeeper.vcs.history import CommitLog, GitLogPerson, GitLogRecord
from sourcekeeper.vcs.repo import WorkingTree
from sourcekeeper.vcs.synchronizer import HistorySynchronizer

__all__ = [
    "__version__",
    # Facade
    "SourcesManager",
    # Configuration
    "Settings",
    "configure_logging",
    "load_settings",
    # Errors
    "ArchiveNotFoundError",
    "ConfigurationError",
    "GitLogOutOfBoundsError",
    "NotFoundError",
    "ParseError",
    "SourcesError",
    "ToolInvocationError",
    # Components
    "ArchiveKey",
    "ArchiveKind",
    "ArchiveStore",
    "BuildPipeline",
    "CommitLog",
    "GitLogPerson",
    "GitLogRecord",
    "HistorySynchronizer",
    "ProgressStream",
    "WorkingTree",
]
