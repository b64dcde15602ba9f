"""Working tree and commit history."""

from sourcekeeper.vcs.history import CommitLog, GitLogPerson, GitLogRecord
from sourcekeeper.vcs.repo import WorkingTree
from sourcekeeper.vcs.synchronizer import HistorySynchronizer

__all__ = [
    "CommitLog",
    "GitLogPerson",
    "GitLogRecord",
    "HistorySynchronizer",
    "WorkingTree",
]
