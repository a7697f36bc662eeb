"""
Filesystem and glob-matching capabilities.

The extraction, validation and analysis code never touches ``os`` directly;
it goes through the two narrow protocols defined here so tests (and other
hosts) can substitute their own implementations.

    FileSystem   exists / is_directory / read_file / list_files
    GlobMatcher  matches(pattern, path)

``LocalFileSystem`` and ``PathGlobMatcher`` are the default implementations.
"""

from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from codeviews.errors import RepositoryNotFoundError

logger = logging.getLogger(__name__)

GITIGNORE_FILENAME = ".gitignore"


def strip_leading_slash(path: str) -> str:
    """Drop one leading "/" so the path reads as repository-relative."""
    return path[1:] if path.startswith("/") else path


def _raise_walk_error(error: OSError) -> None:
    raise error


@runtime_checkable
class GlobMatcher(Protocol):
    """Match repository-relative POSIX paths against glob patterns."""

    def matches(self, pattern: str, path: str) -> bool:
        """Return True if ``path`` matches ``pattern``."""
        ...


@runtime_checkable
class FileSystem(Protocol):
    """Filesystem access used by the parser, validator and analyzers."""

    def exists(self, path: str | Path) -> bool:
        """Return True if a file or directory exists at ``path``."""
        ...

    def is_directory(self, path: str | Path) -> bool:
        """Return True if ``path`` is an existing directory."""
        ...

    def read_file(self, path: str | Path) -> str:
        """Read a text file. Raises FileNotFoundError / OSError."""
        ...

    def list_files(
        self,
        root: str | Path,
        patterns: Sequence[str],
        exclude_patterns: Sequence[str] = (),
        respect_gitignore: bool = True,
    ) -> List[str]:
        """List files under ``root`` matching any of ``patterns``, as relative paths."""
        ...


@lru_cache(maxsize=512)
def _compile_glob(pattern: str) -> "re.Pattern[str]":
    """Translate a glob with ``**`` support into an anchored regex."""
    i, n = 0, len(pattern)
    out: List[str] = []
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern[i:i + 2] == "**":
                if pattern[i + 2:i + 3] == "/":
                    out.append("(?:.*/)?")
                    i += 3
                else:
                    out.append(".*")
                    i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1:end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end + 1
                continue
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out) + r"\Z")


class PathGlobMatcher:
    """
    Glob matcher for repository-relative paths.

    Supports ``*`` (within one segment), ``?``, ``[...]`` classes, ``**``
    (any number of segments) and trailing-slash directory patterns
    (``build/`` matches ``build`` and everything under it).
    """

    def matches(self, pattern: str, path: str) -> bool:
        path = path.replace(os.sep, "/")
        if pattern.endswith("/"):
            base = pattern.rstrip("/")
            return bool(_compile_glob(base).match(path) or _compile_glob(base + "/**").match(path))
        return bool(_compile_glob(pattern).match(path))

    def matches_any(self, patterns: Iterable[str], path: str) -> bool:
        return any(self.matches(p, path) for p in patterns)


class GitignoreRules:
    """
    Root ``.gitignore`` rules.

    Handles comments, negation (``!``), anchored patterns (containing a
    slash), directory-only patterns (trailing slash) and the rule that an
    ignored directory hides everything below it. Nested ``.gitignore`` files
    are not read.
    """

    def __init__(self, lines: Iterable[str], matcher: Optional[GlobMatcher] = None):
        self.matcher = matcher or PathGlobMatcher()
        self.rules: List[tuple[str, bool, bool]] = []  # (glob, negated, dir_only)
        for raw in lines:
            line = raw.rstrip("\n").rstrip()
            if not line or line.startswith("#"):
                continue
            negated = line.startswith("!")
            if negated:
                line = line[1:]
            dir_only = line.endswith("/")
            line = line.rstrip("/")
            if not line:
                continue
            if "/" in line:
                glob = line.lstrip("/")
            else:
                glob = "**/" + line
            self.rules.append((glob, negated, dir_only))

    @classmethod
    def load(cls, root: str | Path, matcher: Optional[GlobMatcher] = None) -> "GitignoreRules":
        path = Path(root) / GITIGNORE_FILENAME
        if not path.is_file():
            return cls([], matcher)
        try:
            return cls(path.read_text(encoding="utf-8").splitlines(), matcher)
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return cls([], matcher)

    def ignores(self, path: str, is_dir: bool = False) -> bool:
        parts = path.split("/")
        parents = ["/".join(parts[:k]) for k in range(1, len(parts))]
        ignored = False
        for glob, negated, dir_only in self.rules:
            candidates = list(parents)
            if is_dir or not dir_only:
                candidates.append(path)
            if any(self.matcher.matches(glob, c) for c in candidates):
                ignored = not negated
        return ignored


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def __init__(self, matcher: Optional[GlobMatcher] = None):
        self.matcher = matcher or PathGlobMatcher()

    def exists(self, path: str | Path) -> bool:
        return os.path.exists(path)

    def is_directory(self, path: str | Path) -> bool:
        return os.path.isdir(path)

    def read_file(self, path: str | Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def list_files(
        self,
        root: str | Path,
        patterns: Sequence[str],
        exclude_patterns: Sequence[str] = (),
        respect_gitignore: bool = True,
    ) -> List[str]:
        root = Path(root)
        if not root.is_dir():
            raise RepositoryNotFoundError(str(root))

        gitignore = GitignoreRules.load(root, self.matcher) if respect_gitignore else None
        # "**/node_modules/**" prunes any directory matching "**/node_modules"
        prune = [p[:-3] for p in exclude_patterns if p.endswith("/**")]

        results: List[str] = []
        # Unreadable directories abort the listing
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
            rel_dir = os.path.relpath(dirpath, root).replace(os.sep, "/")
            rel_dir = "" if rel_dir == "." else rel_dir

            kept = []
            for d in sorted(dirnames):
                rel = f"{rel_dir}/{d}" if rel_dir else d
                if d == ".git":
                    continue
                if any(self.matcher.matches(p, rel) for p in prune):
                    continue
                if gitignore and gitignore.ignores(rel, is_dir=True):
                    continue
                kept.append(d)
            dirnames[:] = kept

            for name in sorted(filenames):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if not any(self.matcher.matches(p, rel) for p in patterns):
                    continue
                if any(self.matcher.matches(p, rel) for p in exclude_patterns):
                    continue
                if gitignore and gitignore.ignores(rel):
                    continue
                results.append(rel)

        logger.debug(f"Listed {len(results)} files under {root}")
        return sorted(results)
