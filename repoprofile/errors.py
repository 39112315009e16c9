"""Exception types raised by the analysis engine."""

from __future__ import annotations


class RepoProfileError(Exception):
    """Base class for errors surfaced to callers of the engine."""


class PathError(RepoProfileError):
    """Raised when the repository path is missing or is not a directory."""


class FileReadError(RepoProfileError):
    """Raised when a single file cannot be read as text.

    Stages catch this and skip the file; it never aborts an analysis run.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Unable to read {path}: {reason}")
        self.path = path
        self.reason = reason


class ManifestParseError(RepoProfileError):
    """Raised when a dependency manifest exists but cannot be parsed."""


__all__ = ["FileReadError", "ManifestParseError", "PathError", "RepoProfileError"]
