"""BuildPipeline — compile a commit and package its binaries.

Phases run in order under the working-tree lock; each failure is reported
with the phase that failed and the captured output of the failing tool.
The binary archive doubles as the build cache: once it exists for a commit
and build mode, compiling that pair again is a no-op.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from sourcekeeper.archives.store import ArchiveKey, ArchiveStore
from sourcekeeper.build.progress import ProgressStream
from sourcekeeper.build.scripts import build_env, run_script, setup_env
from sourcekeeper.config import (
    BUILD_DIR,
    BUILD_SCRIPT,
    INSTALL_BUILD_TOOLS_SCRIPT,
    LEGACY_CONFIGURE_SCRIPT,
    RPC_PROXY_PATH,
    SCRIPTS_DIR,
    SETUP_DEPENDENCIES_SCRIPT,
)
from sourcekeeper.errors import SourcesError, ToolInvocationError
from sourcekeeper.vcs.repo import WorkingTree

logger = logging.getLogger(__name__)


def _remove_build_output(build_dir: Path) -> None:
    """Delete *build_dir*.  A symlink is unlinked, never followed."""
    try:
        if build_dir.is_symlink() or not build_dir.is_dir():
            build_dir.unlink()
        else:
            shutil.rmtree(build_dir)
    except FileNotFoundError:
        pass


class BuildPipeline:
    """Compile commits of the working tree into binary archives.

    Parameters
    ----------
    tree:
        The shared working tree.
    store:
        Where binary archives are kept.
    """

    def __init__(self, tree: WorkingTree, store: ArchiveStore) -> None:
        self.tree = tree
        self.store = store

    def compile(
        self,
        commit_hash: str,
        profiling: bool = False,
        progress: ProgressStream | None = None,
    ) -> Path:
        """Build *commit_hash* and return the path of its binary archive.

        *progress*, when given, receives milestones and is closed exactly
        once whether the build succeeds or fails.
        """
        try:
            return self._compile(commit_hash, profiling, progress)
        finally:
            if progress is not None:
                progress.report(100)
                progress.close()

    def _compile(
        self,
        commit_hash: str,
        profiling: bool,
        progress: ProgressStream | None,
    ) -> Path:
        def tick(value: float) -> None:
            if progress is not None:
                progress.report(value)

        tag = f"[Compile {commit_hash}-{str(profiling).lower()}]"
        archive = self.store.path(ArchiveKey.binary(commit_hash, profiling))
        tick(1)

        with self.tree.lock:
            tick(2)
            if archive.is_file():
                logger.info("%s: Binaries already archived", tag)
                return archive

            try:
                self.tree.checkout(commit_hash)
            except ToolInvocationError as exc:
                raise exc.wrap("Checkout failed") from exc
            logger.info("%s: Checkout complete", tag)
            tick(5)

            try:
                self.tree.sync_submodules()
            except ToolInvocationError as exc:
                raise exc.wrap("Submodule update failed") from exc
            logger.info("%s: Update submodules complete", tag)
            tick(10)

            build_dir = self.tree.path / BUILD_DIR
            try:
                _remove_build_output(build_dir)
            except OSError as exc:
                raise SourcesError(f"Cleaning build directory failed: {exc}") from exc
            logger.info("%s: Cleaned build directory", tag)

            self._setup_environment(profiling, tag)
            tick(50)

            script = self.tree.path / SCRIPTS_DIR / BUILD_SCRIPT
            try:
                run_script(script, self.tree.path, build_env(profiling))
            except ToolInvocationError as exc:
                raise exc.wrap("Build failed") from exc
            logger.info("%s: Build script complete", tag)
            tick(90)

            proxy = self.tree.path / RPC_PROXY_PATH
            if proxy.is_dir():
                logger.info("%s: Copying RPC proxy", tag)
                try:
                    shutil.copytree(proxy, build_dir / RPC_PROXY_PATH, dirs_exist_ok=True)
                except OSError as exc:
                    raise SourcesError(f"Copying RPC proxy failed: {exc}") from exc

            try:
                self.store.create(build_dir, archive)
            except OSError as exc:
                raise SourcesError(f"Packaging binaries failed: {exc}") from exc
            logger.info("%s: Binaries archived to %s", tag, archive)
            return archive

    def _setup_environment(self, profiling: bool, tag: str) -> None:
        """Run the modern setup scripts, or the legacy configure script.

        A missing modern script selects the legacy path; a modern script
        that fails is fatal.
        """
        scripts = self.tree.path / SCRIPTS_DIR
        env = setup_env(profiling)
        modern = [
            (INSTALL_BUILD_TOOLS_SCRIPT, "Build-environment setup"),
            (SETUP_DEPENDENCIES_SCRIPT, "Dependency installation"),
        ]

        use_legacy = False
        for name, phase in modern:
            script = scripts / name
            if not script.is_file():
                use_legacy = True
                continue
            try:
                run_script(script, self.tree.path, env)
            except ToolInvocationError as exc:
                raise exc.wrap(f"{phase} failed") from exc
            logger.info("%s: %s complete", tag, phase)

        if not use_legacy:
            return

        logger.info("%s: Attempting to use legacy configuration", tag)
        script = scripts / LEGACY_CONFIGURE_SCRIPT
        if not script.is_file():
            raise ToolInvocationError(
                f"Legacy configuration failed: {SCRIPTS_DIR}/{LEGACY_CONFIGURE_SCRIPT} not found"
            )
        try:
            run_script(script, self.tree.path, env)
        except ToolInvocationError as exc:
            raise exc.wrap("Legacy configuration failed") from exc
        logger.info("%s: Legacy configuration complete", tag)
