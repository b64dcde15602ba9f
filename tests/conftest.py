"""Shared fixtures: throwaway upstream repositories driven by subprocess git."""

from __future__ import annotations

import os
import subprocess
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Callable

import pytest

from sourcekeeper.manager import SourcesManager
from sourcekeeper.settings import Settings

FIXED_NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class Upstream:
    """A non-bare repository standing in for the hosted remote."""

    def __init__(self, path: Path) -> None:
        self.path = path
        path.mkdir(parents=True, exist_ok=True)
        self.git("init", "-b", "main")

    def git(self, *args: str, date: datetime | None = None) -> str:
        env = dict(os.environ)
        env.update({
            "GIT_AUTHOR_NAME": "Test Author",
            "GIT_AUTHOR_EMAIL": "author@example.test",
            "GIT_COMMITTER_NAME": "Test Committer",
            "GIT_COMMITTER_EMAIL": "committer@example.test",
        })
        if date is not None:
            env["GIT_AUTHOR_DATE"] = format_datetime(date)
            env["GIT_COMMITTER_DATE"] = format_datetime(date)
        result = subprocess.run(
            ["git", "-c", "commit.gpgsign=false", *args],
            cwd=self.path, env=env, capture_output=True, text=True, check=True,
        )
        return result.stdout

    def commit(
        self,
        files: dict[str, str | None],
        message: str,
        date: datetime | None = None,
    ) -> str:
        """Write (or delete, for *None*) *files* and commit them.  Returns the hash."""
        for rel, content in files.items():
            target = self.path / rel
            if content is None:
                self.git("rm", "-q", "--", rel)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            self.git("add", "--", rel)
        self.git("commit", "-q", "--allow-empty", "-m", message, date=date)
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD").strip()

    def open_pull(
        self,
        number: int,
        subject: str,
        authored: datetime,
        *,
        mergeable: bool = False,
    ) -> str:
        """Publish a PR head (and optionally its merge ref) off ``main``."""
        branch = f"pr-{number}"
        self.git("checkout", "-q", "-b", branch, "main")
        sha = self.commit({f"pr/{number}.txt": subject}, subject, date=authored)
        self.git("checkout", "-q", "main")
        self.git("branch", "-q", "-D", branch)
        self.git("update-ref", f"refs/pull/{number}/head", sha)
        if mergeable:
            self.git("update-ref", f"refs/pull/{number}/merge", sha)
        return sha


@pytest.fixture()
def upstream(tmp_path: Path) -> Upstream:
    repo = Upstream(tmp_path / "upstream")
    repo.commit({"README.md": "# upstream\n"}, "Initial commit")
    return repo


@pytest.fixture()
def make_manager(tmp_path: Path) -> Callable[..., SourcesManager]:
    """Build a SourcesManager cloning *upstream* into a fresh data root."""

    def _make(upstream: Upstream, main_branch: str = "main") -> SourcesManager:
        settings = Settings(
            data_dir=tmp_path / "data",
            repo_url=str(upstream.path),
            main_branch=main_branch,
        )
        return SourcesManager(settings, clock=lambda: FIXED_NOW)

    return _make


@pytest.fixture(autouse=True)
def _clean_build_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the runner's own build flags out of script environments."""
    monkeypatch.delenv("BUILD_RELEASE", raising=False)
    monkeypatch.delenv("BUILD_PROFILING", raising=False)


@pytest.fixture()
def now() -> datetime:
    """The frozen clock every test manager uses."""
    return FIXED_NOW
