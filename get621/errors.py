"""Error hierarchy for get621.

Library code raises these; only the CLI catches them and decides how to
report and which exit status to use.
"""

from __future__ import annotations


class Get621Error(Exception):
    """Base class for every error raised by get621."""


class NetworkError(Get621Error):
    """The request could not be sent, or the server answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(Get621Error):
    """The server answered, but the requested post or pool does not exist."""

    def __init__(self, message: str = "Not found.", reason: str = ""):
        super().__init__(message)
        self.reason = reason


class MappingError(Get621Error):
    """A JSON payload is missing a field or has an unexpected type."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class FileSystemError(Get621Error):
    """A destination file could not be created."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class InvalidArgumentError(Get621Error, ValueError):
    """Malformed user input or configuration, detected before any request."""
