"""
Line-level scanners for markdown documents.

FileReferenceExtractor finds repository file paths mentioned on one line of
markdown. LineClassifier decides whether a line is a title, a section
heading, some other heading, blank, or plain text.

Both work on a single line with no memory of earlier lines, which means a
``#`` line inside a fenced code block is classified as a heading. The
section state machine in ``codeviews.parsing.markdown`` only talks to the
classifier, so a fence-aware classifier can replace this one without
touching it.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from codeviews.capabilities import FileSystem, strip_leading_slash

DEFAULT_REFERENCE_EXTENSIONS: tuple[str, ...] = (
    "ts", "tsx", "js", "jsx", "mjs", "cjs", "json",
    "yaml", "yml", "md", "txt", "css", "scss", "html",
)

# Candidates with these prefixes are URLs, not repository paths
URL_PREFIXES = ("http", "//")


def _build_patterns(extensions: Sequence[str]) -> List[tuple[str, "re.Pattern[str]", int]]:
    """Reference patterns in priority order: (name, regex, path group)."""
    ext = "|".join(re.escape(e.lstrip(".")) for e in extensions)
    flags = re.IGNORECASE
    return [
        ("inline-code", re.compile(rf"`([^`]+\.(?:{ext}))`", flags), 1),
        ("bold", re.compile(rf"\*\*([^*]+\.(?:{ext}))\*\*", flags), 1),
        ("link", re.compile(rf"\[([^\]]+)\]\(([^)]+\.(?:{ext}))\)", flags), 2),
        ("bare", re.compile(rf"(?:^|(?<=\s))([a-zA-Z0-9_\-/.]+\.(?:{ext}))(?=\s|$)", flags), 1),
    ]


class FileReferenceExtractor:
    """
    Extract candidate file paths from a single line of markdown.

    Four patterns are applied in order, each over the whole line:

    1. inline code      `src/index.ts`
    2. bold             **src/utils/helper.js**
    3. markdown link    [label](docs/guide.md)   (the target, not the label)
    4. bare path        src/components/Button.tsx

    A path found by several patterns is reported once, at its first-seen
    position. When a FileSystem and repository root are supplied, paths that
    do not exist under the root are dropped.

    Example:
        extractor = FileReferenceExtractor()
        extractor.extract("See `src/a.ts` and [b](src/b.ts)")
        # ["src/a.ts", "src/b.ts"]
    """

    def __init__(
        self,
        extensions: Sequence[str] = DEFAULT_REFERENCE_EXTENSIONS,
        fs: Optional[FileSystem] = None,
        repository_root: Optional[str | Path] = None,
    ):
        self.extensions = tuple(extensions)
        self.fs = fs
        self.repository_root = str(repository_root) if repository_root is not None else None
        self._patterns = _build_patterns(self.extensions)

    @property
    def checks_existence(self) -> bool:
        return self.fs is not None and self.repository_root is not None

    def extract(self, line: str) -> List[str]:
        """Return duplicate-free candidate paths found on ``line``."""
        found: List[str] = []
        for _name, pattern, group in self._patterns:
            for match in pattern.finditer(line):
                candidate = match.group(group)
                if not candidate or candidate.startswith(URL_PREFIXES):
                    continue
                candidate = candidate.strip()
                if candidate in found:
                    continue
                if self.checks_existence and not self.fs.exists(
                    os.path.join(self.repository_root, strip_leading_slash(candidate))
                ):
                    continue
                found.append(candidate)
        return found


class LineKind(str, Enum):
    """Classification of a (trimmed) markdown line."""
    TITLE = "title"            # "# Heading"
    SECTION = "section"        # "## Heading" or "### Heading"
    HEADING = "heading"        # any other line starting with "#"
    BLANK = "blank"
    TEXT = "text"


class LineClassifier:
    """Prefix-based line classifier (not fence-aware)."""

    SECTION_PREFIXES = ("## ", "### ")

    def classify(self, line: str) -> LineKind:
        if not line:
            return LineKind.BLANK
        if line.startswith("# "):
            return LineKind.TITLE
        if line.startswith(self.SECTION_PREFIXES):
            return LineKind.SECTION
        if line.startswith("#"):
            return LineKind.HEADING
        return LineKind.TEXT

    @staticmethod
    def heading_text(line: str) -> str:
        """Strip leading ``#`` marks and whitespace from a heading line."""
        return re.sub(r"^#+\s*", "", line).strip()
