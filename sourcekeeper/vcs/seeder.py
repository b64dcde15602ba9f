"""Seeder-change lookup.

Benchmark shards only need re-seeding when the seeder logic changed, so the
coordinator compares the commits returned here for two builds.
"""

from __future__ import annotations

import logging

from sourcekeeper.config import SEEDER_SOURCE_PATH
from sourcekeeper.errors import ToolInvocationError
from sourcekeeper.vcs.repo import WorkingTree

logger = logging.getLogger(__name__)


def find_most_recent_commit_changing_seeder(
    tree: WorkingTree,
    commit_hash: str,
    main_branch: str,
    seeder_path: str = SEEDER_SOURCE_PATH,
) -> str | None:
    """Return the newest commit at or before *commit_hash* touching the seeder.

    The tree is checked out at *commit_hash* for the lookup and returned to
    *main_branch* afterwards, also when the lookup fails.  Returns *None*
    when no commit ever modified *seeder_path*.
    """
    with tree.lock:
        try:
            with tree.checked_out(commit_hash, restore=main_branch):
                output = tree.git("log", "-1", "--format=%H", "--", seeder_path)
        except ToolInvocationError as exc:
            raise exc.wrap("Failed to find seeder change commit") from exc

    found = output.strip() or None
    logger.info("Seeder last changed at %s (as of %s)", found, commit_hash)
    return found
