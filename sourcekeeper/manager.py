"""SourcesManager — the single entry point for the shared working tree.

Usage::

    from sourcekeeper import SourcesManager, load_settings

    sources = SourcesManager(load_settings())
    sources.ensure_sources_updated()
    sources.get_git_log(0, 20, include_oldest=True)
    sources.compile(commit_hash, profiling=False, progress=stream)
    sources.make_commit_archive(commit_hash)
    sources.read_commit_archive(commit_hash)
    sources.find_most_recent_commit_changing_seeder(commit_hash)

Every operation that moves the checkout is serialized on the working-tree
lock, so only one of them runs at a time process-wide.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

from sourcekeeper.archives.store import ArchiveKey, ArchiveStore
from sourcekeeper.build.pipeline import BuildPipeline
from sourcekeeper.build.progress import ProgressStream
from sourcekeeper.errors import SourcesError, ToolInvocationError
from sourcekeeper.settings import Settings
from sourcekeeper.vcs.history import CommitLog, GitLogRecord
from sourcekeeper.vcs.repo import WorkingTree
from sourcekeeper.vcs.seeder import find_most_recent_commit_changing_seeder
from sourcekeeper.vcs.synchronizer import HistorySynchronizer, utc_now

logger = logging.getLogger(__name__)

# Source snapshots ship the tree without git metadata
_SOURCE_ARCHIVE_EXCLUDE = (".git",)


class SourcesManager:
    """Coordinate the working tree, commit log, builds, and archives.

    Parameters
    ----------
    settings:
        Resolved configuration (data root, repository, mainline branch).
    clock:
        Current-time source for pull-request retention.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = settings
        self.tree = WorkingTree(settings.data_dir)
        self.store = ArchiveStore(self.tree.data_dir)
        self.log = CommitLog()
        self.synchronizer = HistorySynchronizer(self.tree, self.log, clock)
        self.pipeline = BuildPipeline(self.tree, self.store)

    # -- Sources lifecycle ----------------------------------------------------

    def ensure_sources_updated(self) -> None:
        """Clone or update the sources, then rebuild the commit log."""
        with self.tree.lock:
            if not self.tree.exists():
                url = self.settings.clone_url()
                try:
                    self.tree.clone(url)
                except ToolInvocationError as exc:
                    raise exc.wrap("Error cloning sources") from exc
            else:
                branch = self.settings.require("main_branch")
                try:
                    self.tree.pull(branch)
                except ToolInvocationError as exc:
                    logger.error("Updating sources failed: %s", exc.output.strip())
                    raise exc.wrap("Error updating sources") from exc
        self.synchronize()

    def synchronize(self) -> None:
        self.synchronizer.synchronize()

    # -- Commit log -----------------------------------------------------------

    def get_git_log(
        self,
        offset: int,
        limit: int,
        include_oldest: bool = False,
    ) -> list[GitLogRecord]:
        return self.log.query(offset, limit, include_oldest)

    def commit_exists(self, commit_hash: str) -> bool:
        return self.log.commit_exists(commit_hash)

    # -- Builds and archives --------------------------------------------------

    def compile(
        self,
        commit_hash: str,
        profiling: bool = False,
        progress: ProgressStream | None = None,
    ) -> Path:
        return self.pipeline.compile(commit_hash, profiling, progress)

    def binaries_archive_path(self, commit_hash: str, profiling: bool = False) -> Path:
        return self.store.path(ArchiveKey.binary(commit_hash, profiling))

    def make_commit_archive(self, commit_hash: str) -> Path:
        """Archive the sources at *commit_hash*, unless already archived."""
        key = ArchiveKey.source(commit_hash)
        path = self.store.path(key)
        with self.tree.lock:
            if path.is_file():
                return path
            try:
                self.tree.checkout(commit_hash)
                self.tree.sync_submodules()
            except ToolInvocationError as exc:
                raise exc.wrap(f"Preparing source archive for {commit_hash} failed") from exc
            try:
                self.store.create(self.tree.path, path, exclude=_SOURCE_ARCHIVE_EXCLUDE)
            except OSError as exc:
                raise SourcesError(f"Packaging source archive failed: {exc}") from exc
        logger.info("Source archive for %s written to %s", commit_hash, path)
        return path

    def read_commit_archive(self, commit_hash: str) -> bytes:
        return self.store.read(ArchiveKey.source(commit_hash))

    # -- Seeder ---------------------------------------------------------------

    def find_most_recent_commit_changing_seeder(self, commit_hash: str) -> str | None:
        branch = self.settings.require("main_branch")
        return find_most_recent_commit_changing_seeder(self.tree, commit_hash, branch)
