"""Exceptions raised by ttpack.

Filesystem failures are not wrapped: they surface as the built-in
``OSError`` raised by the operation that failed.
"""


class TtpackError(Exception):
    """Base class for all ttpack errors."""


class DecodeError(TtpackError):
    """Raised when the plugin manifest cannot be read, parsed, or validated."""


class NetworkError(TtpackError):
    """Raised when an archive download fails or returns a non-success status."""


class ArchiveError(TtpackError):
    """Raised when a downloaded archive is malformed or unreadable."""


class PathTraversalError(ArchiveError):
    """Raised when an archive entry would be written outside its destination."""

    def __init__(self, entry: str, dest_dir: str) -> None:
        self.entry = entry
        self.dest_dir = dest_dir
        super().__init__(f"Archive entry escapes {dest_dir}: {entry!r}")


class EditorError(TtpackError):
    """Raised when the editor cannot be queried for its packpath."""
