"""Compile-and-package pipeline."""

from sourcekeeper.build.pipeline import BuildPipeline
from sourcekeeper.build.progress import ProgressStream

__all__ = ["BuildPipeline", "ProgressStream"]
