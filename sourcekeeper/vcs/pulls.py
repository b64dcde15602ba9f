"""Pull-request activity — remote ref classification and retention."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sourcekeeper.config import (
    MERGEABLE_PR_WINDOW,
    PULL_HEAD_REFSPEC,
    PULL_REF_PREFIX,
    RECENT_PR_WINDOW,
)
from sourcekeeper.errors import ParseError
from sourcekeeper.vcs.history import FIELD_SEP, GitLogRecord, parse_git_date
from sourcekeeper.vcs.repo import WorkingTree

logger = logging.getLogger(__name__)

_HEAD_FORMAT = f"%s{FIELD_SEP}%aD"


@dataclass
class RemotePulls:
    """Pull-request refs advertised by the remote."""

    mergeable: set[int] = field(default_factory=set)
    heads: dict[int, str] = field(default_factory=dict)


def classify_remote_refs(ls_remote_output: str) -> RemotePulls:
    """Classify ``git ls-remote`` lines into mergeable PRs and PR heads.

    ``refs/pull/<N>/merge`` marks PR *N* as (at one point) mergeable and
    ``refs/pull/<N>/head`` records its head commit.  Everything else is
    ignored.
    """
    pulls = RemotePulls()
    for line in ls_remote_output.splitlines():
        parts = line.split("\t")
        if len(parts) != 2:
            continue
        sha, ref = parts
        if not ref.startswith(PULL_REF_PREFIX):
            continue
        number, _, kind = ref[len(PULL_REF_PREFIX):].partition("/")
        try:
            pr = int(number)
        except ValueError:
            continue
        if kind == "merge":
            pulls.mergeable.add(pr)
            logger.debug("Detected (at one point) mergeable PR #%d", pr)
        elif kind == "head":
            pulls.heads[pr] = sha
    return pulls


def is_retained(authored: datetime, mergeable: bool, now: datetime) -> bool:
    """Keep PRs authored in the last 48 hours, or mergeable ones from the last 90 days."""
    if authored > now - RECENT_PR_WINDOW:
        return True
    return mergeable and authored > now - MERGEABLE_PR_WINDOW


def fetch_pull_heads(tree: WorkingTree) -> None:
    """Fetch every PR head into ``refs/remotes/origin/pr-head/*``."""
    tree.git("fetch", "origin", PULL_HEAD_REFSPEC, "--no-recurse-submodules")


def list_remote_pulls(tree: WorkingTree) -> RemotePulls:
    return classify_remote_refs(tree.git("ls-remote", "origin"))


def pull_record(tree: WorkingTree, pr: int, head: str) -> GitLogRecord:
    """Build the display-only log entry for the head commit of *pr*."""
    output = tree.git("log", "-n", "1", f"--format={_HEAD_FORMAT}", head).strip("\n")
    subject, sep, authored_raw = output.rpartition(FIELD_SEP)
    if not sep:
        raise ParseError(f"Malformed log output for PR #{pr}", output=output)
    authored = parse_git_date(authored_raw)
    return GitLogRecord(
        commit_hash=head,
        subject=f"PR #{pr} - {subject}",
        authored=authored,
        committed=authored,
    )


def collect_pull_records(tree: WorkingTree, now: datetime) -> list[GitLogRecord]:
    """Return retained PR entries sorted by authored date, newest first."""
    fetch_pull_heads(tree)
    pulls = list_remote_pulls(tree)

    records: list[GitLogRecord] = []
    for pr, head in sorted(pulls.heads.items()):
        try:
            record = pull_record(tree, pr, head)
        except ParseError as exc:
            raise exc.wrap(f"Reading PR #{pr}") from exc
        if is_retained(record.authored, pr in pulls.mergeable, now):
            records.append(record)
        else:
            logger.debug("Dropping stale PR #%d", pr)

    records.sort(key=lambda r: r.authored, reverse=True)
    return records
