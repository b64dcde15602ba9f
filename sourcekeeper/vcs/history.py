"""Commit history — git log export, record parsing, and the queryable log.

The export uses ASCII unit/record separators between fields and commits so
that subjects and names can contain any printable character.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field

from sourcekeeper.config import GIT_DATE_FORMAT
from sourcekeeper.errors import GitLogOutOfBoundsError, ParseError
from sourcekeeper.vcs.repo import WorkingTree

logger = logging.getLogger(__name__)

FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"

# commit, parent, subject, author name/email/date, committer name/email/date
LOG_FORMAT = FIELD_SEP.join(
    ["%H", "%P", "%s", "%aN", "%aE", "%aD", "%cN", "%cE", "%cD"]
) + RECORD_SEP
_FIELD_COUNT = 9


class GitLogPerson(BaseModel):
    """Author or committer identity."""

    name: str = ""
    email: str = ""


class GitLogRecord(BaseModel):
    """A single entry of the commit log.

    Synthetic pull-request entries have an empty ``parent_hash`` and
    ``committed`` equal to ``authored``; they are not real commits.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    commit_hash: str = Field(alias="commit")
    parent_hash: str = Field(default="", alias="parent")
    subject: str = ""
    author: GitLogPerson = Field(default_factory=GitLogPerson)
    authored: datetime
    committer: GitLogPerson = Field(default_factory=GitLogPerson)
    committed: datetime

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the wire keys consumed by the coordinator UI."""
        return self.model_dump(by_alias=True, mode="json")


def parse_git_date(value: str) -> datetime:
    """Parse an RFC-2822 date as printed by git's ``%aD``/``%cD``."""
    try:
        return datetime.strptime(value.strip(), GIT_DATE_FORMAT)
    except ValueError as exc:
        raise ParseError(f"Unparseable git date {value!r}") from exc


def parse_log_export(text: str) -> list[GitLogRecord]:
    """Convert the output of ``git log --format=LOG_FORMAT`` into records."""
    records: list[GitLogRecord] = []
    for chunk in text.split(RECORD_SEP):
        chunk = chunk.strip("\n")
        if not chunk:
            continue
        parts = chunk.split(FIELD_SEP)
        if len(parts) != _FIELD_COUNT:
            raise ParseError(
                f"Malformed git log record: expected {_FIELD_COUNT} fields, "
                f"got {len(parts)}",
                output=chunk,
            )
        commit, parent, subject, a_name, a_email, a_date, c_name, c_email, c_date = parts
        records.append(
            GitLogRecord(
                commit_hash=commit,
                parent_hash=parent,
                subject=subject,
                author=GitLogPerson(name=a_name, email=a_email),
                authored=parse_git_date(a_date),
                committer=GitLogPerson(name=c_name, email=c_email),
                committed=parse_git_date(c_date),
            )
        )
    return records


def export_mainline(tree: WorkingTree) -> list[GitLogRecord]:
    """Return the full history of the current checkout, newest first."""
    return parse_log_export(tree.git("log", f"--format={LOG_FORMAT}"))


def splice_log(
    mainline: Sequence[GitLogRecord],
    pulls: Sequence[GitLogRecord],
    pinned: int,
) -> list[GitLogRecord]:
    """Insert *pulls* after the first *pinned* mainline records."""
    return [*mainline[:pinned], *pulls, *mainline[pinned:]]


class CommitLog:
    """Ordered, wholesale-replaced commit log.

    The record sequence is an immutable tuple swapped in by a single
    assignment, so readers always see either the old or the new log.
    """

    def __init__(self, records: Sequence[GitLogRecord] = ()) -> None:
        self._records: tuple[GitLogRecord, ...] = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> tuple[GitLogRecord, ...]:
        return self._records

    def replace(self, records: Sequence[GitLogRecord]) -> None:
        self._records = tuple(records)

    def query(
        self,
        offset: int,
        limit: int,
        include_oldest: bool = False,
    ) -> list[GitLogRecord]:
        """Return ``limit`` records starting at ``offset``.

        When *include_oldest* is set, the oldest record is appended even
        if it is already part of the window.
        """
        records = self._records
        if not records:
            return []
        if offset < 0 or offset >= len(records):
            raise GitLogOutOfBoundsError(
                f"Requested out-of-bounds git log (offset {offset}, length {len(records)})"
            )
        window = list(records[offset:min(offset + limit, len(records))])
        if include_oldest:
            window.append(records[-1])
        return window

    def commit_exists(self, commit_hash: str) -> bool:
        return any(r.commit_hash == commit_hash for r in self._records)
