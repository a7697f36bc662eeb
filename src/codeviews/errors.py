"""
Exception types raised by codeviews.

Content problems (bad markdown, missing files, malformed views) are never
raised; they are reported as validation issues or lint violations. These
exceptions cover malformed *invocations*: a repository root that does not
exist, a document outside the repository, an unreadable config file.
"""

from __future__ import annotations


class CodeviewsError(Exception):
    """Base class for all codeviews errors."""


class RepositoryNotFoundError(CodeviewsError):
    """Repository root does not exist or cannot be accessed."""

    def __init__(self, path: str, reason: str = "does not exist"):
        self.path = path
        super().__init__(f"Repository root {reason}: {path}")


class PathOutsideRepositoryError(CodeviewsError):
    """A path resolves to a location outside the repository root."""

    def __init__(self, path: str, repository_root: str):
        self.path = path
        self.repository_root = repository_root
        super().__init__(f"Path {path} is not within repository {repository_root}")


class ConfigError(CodeviewsError):
    """Project configuration file is unreadable or invalid."""


class StorageError(CodeviewsError):
    """A view could not be written to or removed from the store."""
