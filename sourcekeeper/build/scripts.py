"""Build-script invocation."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from sourcekeeper.errors import ToolInvocationError

logger = logging.getLogger(__name__)

RELEASE_FLAG = "BUILD_RELEASE"
PROFILING_FLAG = "BUILD_PROFILING"


def setup_env(profiling: bool) -> dict[str, str]:
    """Ambient environment for the setup scripts.

    Release builds get ``BUILD_RELEASE=1``; profiling builds get no flag.
    """
    env = dict(os.environ)
    if not profiling:
        env[RELEASE_FLAG] = "1"
    return env


def build_env(profiling: bool) -> dict[str, str]:
    """Ambient environment for ``build.sh`` with exactly one mode flag."""
    env = dict(os.environ)
    env[PROFILING_FLAG if profiling else RELEASE_FLAG] = "1"
    return env


def run_script(script: Path, cwd: Path, env: dict[str, str]) -> str:
    """Run *script* with bash and return its combined output.

    Raises :class:`ToolInvocationError` with the captured output when the
    script exits non-zero or cannot be started.
    """
    logger.debug("bash %s (cwd=%s)", script, cwd)
    try:
        result = subprocess.run(
            ["bash", str(script)],
            cwd=cwd,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as exc:
        raise ToolInvocationError(f"{script.name} could not be started: {exc}") from exc
    if result.returncode != 0:
        raise ToolInvocationError(
            f"{script.name} failed (rc={result.returncode})",
            output=result.stdout,
            returncode=result.returncode,
        )
    return result.stdout
