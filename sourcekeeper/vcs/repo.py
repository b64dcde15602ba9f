"""WorkingTree — the single shared checkout and the lock guarding it.

All git operations use :func:`subprocess.run`; no GitPython dependency.
"""

from __future__ import annotations

import logging
import re
import subprocess
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sourcekeeper.config import SOURCES_DIR
from sourcekeeper.errors import SourcesError, ToolInvocationError

logger = logging.getLogger(__name__)

_CREDENTIALS = re.compile(r"(://)[^/@\s]+@")


def _redact(args: tuple[str, ...]) -> str:
    """Render *args* for logs with URL credentials masked."""
    return _CREDENTIALS.sub(r"\1***@", " ".join(args))


def _run_git(
    *args: str,
    cwd: str | Path | None = None,
) -> subprocess.CompletedProcess[str]:
    """Execute a git command via subprocess and return the result.

    Parameters
    ----------
    *args:
        Arguments passed after ``git``.
    cwd:
        Working directory for the command.

    Raises :class:`ToolInvocationError` on non-zero exit, carrying the
    combined stdout/stderr of the command.
    """
    cmd = ["git", *args]
    logger.debug("git %s (cwd=%s)", _redact(args), cwd)
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as exc:
        raise ToolInvocationError(f"git {args[0]} could not be started: {exc}") from exc
    if result.returncode != 0:
        raise ToolInvocationError(
            f"git {_redact(args)} failed (rc={result.returncode})",
            output=result.stdout,
            returncode=result.returncode,
        )
    return result


class WorkingTree:
    """The process-wide checkout used for every build and archive operation.

    Parameters
    ----------
    data_dir:
        Managed data root.  The checkout lives in ``<data_dir>/sources``.

    The :attr:`lock` serializes every operation that moves the checkout;
    callers acquire it for the full duration of their operation.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir).resolve()
        self.path = self.data_dir / SOURCES_DIR
        self.lock = threading.Lock()

    def exists(self) -> bool:
        """Return *True* once the sources have been cloned."""
        return self.path.is_dir()

    def git(self, *args: str) -> str:
        """Run a git command inside the checkout and return its output."""
        return _run_git(*args, cwd=self.path).stdout

    # -- Lifecycle ------------------------------------------------------------

    def clone(self, url: str) -> Path:
        """Clone *url* into the sources directory and initialise submodules."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        try:
            _run_git("clone", url, SOURCES_DIR, cwd=self.data_dir)
        except ToolInvocationError as exc:
            raise exc.wrap(
                "Failed to clone sources. Do you have the right token configured?"
            ) from exc
        self.sync_submodules(init=True)
        logger.info("Cloned sources into %s", self.path)
        return self.path

    def pull(self, branch: str) -> None:
        """Check out *branch* and fast-forward it from the remote."""
        self.checkout(branch)
        self.git("pull")
        logger.info("Pulled latest %s", branch)

    def checkout(self, ref: str) -> None:
        self.git("checkout", ref)
        logger.debug("Checked out %s", ref)

    def sync_submodules(self, *, init: bool = False) -> None:
        """Run ``submodule sync`` followed by a recursive ``submodule update``."""
        self.git("submodule", "sync")
        args = ["submodule", "update"]
        if init:
            args.append("--init")
        args.append("--recursive")
        self.git(*args)

    def current_ref(self) -> str:
        """Return the checked-out branch name, or the commit hash when detached."""
        ref = self.git("rev-parse", "--abbrev-ref", "HEAD").strip()
        if ref == "HEAD":
            return self.git("rev-parse", "HEAD").strip()
        return ref

    @contextmanager
    def checked_out(self, ref: str, restore: str | None = None) -> Iterator[None]:
        """Check out *ref* for the duration of the block.

        On exit, success or failure, *restore* (default: the ref checked out
        before entering) is checked out again.  A restore failure after the
        block raised is logged and the original error propagates.
        """
        if restore is None:
            restore = self.current_ref()
        try:
            self.checkout(ref)
            yield
        except BaseException:
            try:
                self.checkout(restore)
            except SourcesError:
                logger.error("Could not restore %s after failure", restore, exc_info=True)
            raise
        self.checkout(restore)
