"""Error taxonomy shared by every sources component.

Errors carry the captured output of the external process that caused them
(when there is one) so callers can surface build logs to users.
"""

from __future__ import annotations

import copy


class SourcesError(Exception):
    """Base class for all sourcekeeper failures."""

    def __init__(self, message: str, *, output: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.output = output

    def __str__(self) -> str:
        if self.output:
            return f"{self.message}\n\n{self.output.rstrip()}"
        return self.message

    def wrap(self, context: str) -> SourcesError:
        """Return a copy of this error with *context* prefixed to the message."""
        clone = copy.copy(self)
        clone.message = f"{context}: {self.message}"
        clone.args = (clone.message,)
        return clone


class ToolInvocationError(SourcesError):
    """An external command exited non-zero or could not be started."""

    def __init__(
        self,
        message: str,
        *,
        output: str = "",
        returncode: int | None = None,
    ) -> None:
        super().__init__(message, output=output)
        self.returncode = returncode


class ParseError(SourcesError):
    """A timestamp or structured git record could not be parsed."""


class NotFoundError(SourcesError):
    """A requested record or archive does not exist."""


class GitLogOutOfBoundsError(NotFoundError):
    """The requested git log offset lies beyond the end of the log."""


class ArchiveNotFoundError(NotFoundError):
    """An archive was requested before it was created."""


class ConfigurationError(SourcesError):
    """A required external setting is missing."""
