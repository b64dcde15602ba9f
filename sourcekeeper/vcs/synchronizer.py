"""HistorySynchronizer — rebuilds the commit log from mainline and PRs."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from sourcekeeper.config import PINNED_MAINLINE_COMMITS
from sourcekeeper.errors import SourcesError
from sourcekeeper.vcs.history import CommitLog, export_mainline, splice_log
from sourcekeeper.vcs.pulls import collect_pull_records
from sourcekeeper.vcs.repo import WorkingTree

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HistorySynchronizer:
    """Rebuild a :class:`CommitLog` from the working tree.

    Parameters
    ----------
    tree:
        The shared working tree.
    log:
        The log to replace on success.
    clock:
        Returns the current time; used for the PR retention windows.
    """

    def __init__(
        self,
        tree: WorkingTree,
        log: CommitLog,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.tree = tree
        self.log = log
        self.clock = clock

    def synchronize(self) -> None:
        """Rebuild the log, or raise and leave the previous log untouched."""
        with self.tree.lock:
            try:
                mainline = export_mainline(self.tree)
            except SourcesError as exc:
                raise exc.wrap("Error updating commit history") from exc
            try:
                pulls = collect_pull_records(self.tree, self.clock())
            except SourcesError as exc:
                raise exc.wrap("Failed to fetch PRs") from exc

            records = splice_log(mainline, pulls, PINNED_MAINLINE_COMMITS)
            self.log.replace(records)

        logger.info(
            "Commit history rebuilt: %d mainline commits, %d PRs",
            len(mainline), len(pulls),
        )
