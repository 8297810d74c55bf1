"""
Error types raised by the monitor's collaborators.

Everything raised here is caught at the boundary of the operation that
produced it and turned into an `error` event; none of it ever stops the
polling loop.
"""


class ScriptwatchError(Exception):
    """Base class for all scriptwatch errors."""


class MembersAPIError(ScriptwatchError):
    """Fetching room messages failed (transport, status, or missing token)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationError(ScriptwatchError):
    """The generation step produced nothing usable."""


class ExportError(ScriptwatchError):
    """Creating or populating the export spreadsheet failed."""
