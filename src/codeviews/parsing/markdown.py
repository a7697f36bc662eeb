"""
Markdown-to-structure parser.

Turns an overview document into named sections, each bound to the files it
mentions, laid out on a grid of at most three columns:

- The first ``# `` heading is the title; the paragraph right after it is
  the description.
- Every ``## `` / ``### `` heading opens a section.
- Lines inside a section are scanned for file references.
- Sections without any file reference are dropped.
- Emitted sections are placed row-major: index i -> (i // 3, i % 3).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from codeviews.capabilities import FileSystem
from codeviews.models import ReferenceGroup
from codeviews.parsing.references import FileReferenceExtractor, LineClassifier, LineKind

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Codebase View"
MAX_GRID_COLUMNS = 3


class ExtractedStructure(BaseModel):
    """Parser output: title, description and the section grid."""
    name: str = Field(default=DEFAULT_TITLE)
    description: str = Field(default="")
    reference_groups: Dict[str, ReferenceGroup] = Field(default_factory=dict)
    rows: int = Field(default=1, ge=1)
    cols: int = Field(default=1, ge=1, le=MAX_GRID_COLUMNS)

    @property
    def has_title(self) -> bool:
        return self.name != DEFAULT_TITLE


class _GridAssigner:
    """Hands out row-major coordinates and tracks the occupied extent."""

    def __init__(self, columns: int = MAX_GRID_COLUMNS):
        self.columns = columns
        self.index = 0
        self.max_row = 0
        self.max_col = 0

    def next(self) -> List[int]:
        row, col = divmod(self.index, self.columns)
        self.max_row = max(self.max_row, row)
        self.max_col = max(self.max_col, col)
        self.index += 1
        return [row, col]

    @property
    def rows(self) -> int:
        return self.max_row + 1 if self.index else 1

    @property
    def cols(self) -> int:
        return min(self.max_col + 1, self.columns) if self.index else 1


class MarkdownStructureParser:
    """
    Single-pass, line-oriented markdown parser.

    Usage:
        parser = MarkdownStructureParser()
        structure = parser.parse(Path("docs/architecture.md").read_text())

        # Only keep references that exist in the repository
        parser = MarkdownStructureParser(
            FileReferenceExtractor(fs=LocalFileSystem(), repository_root=repo)
        )
    """

    def __init__(
        self,
        extractor: Optional[FileReferenceExtractor] = None,
        classifier: Optional[LineClassifier] = None,
    ):
        self.extractor = extractor or FileReferenceExtractor()
        self.classifier = classifier or LineClassifier()

    def parse(self, content: str) -> ExtractedStructure:
        name = DEFAULT_TITLE
        title_found = False
        description_parts: List[str] = []
        in_description = False

        groups: Dict[str, ReferenceGroup] = {}
        grid = _GridAssigner()
        section: Optional[str] = None
        files: List[str] = []

        def flush() -> None:
            if section is None or not files:
                return
            label = self._unique_label(section, groups)
            groups[label] = ReferenceGroup(coordinates=grid.next(), files=files, priority=0)

        for raw in content.split("\n"):
            line = raw.strip()
            kind = self.classifier.classify(line)

            if kind is LineKind.TITLE and not title_found:
                name = line[2:].strip()
                title_found = True
                in_description = True
                continue

            if in_description:
                if kind is LineKind.TEXT:
                    description_parts.append(line)
                else:
                    in_description = False

            if kind is LineKind.SECTION:
                flush()
                section = self.classifier.heading_text(line)
                files = []
                continue

            for candidate in self.extractor.extract(line):
                if candidate not in files:
                    files.append(candidate)

        flush()

        structure = ExtractedStructure(
            name=name or DEFAULT_TITLE,
            description=" ".join(description_parts),
            reference_groups=groups,
            rows=grid.rows,
            cols=grid.cols,
        )
        logger.debug(
            f"Parsed '{structure.name}': {len(groups)} sections, "
            f"{structure.rows}x{structure.cols} grid"
        )
        return structure

    @staticmethod
    def _unique_label(label: str, groups: Dict[str, ReferenceGroup]) -> str:
        """Suffix repeated section headings so each group keeps its own label."""
        if label not in groups:
            return label
        n = 2
        while f"{label} ({n})" in groups:
            n += 1
        return f"{label} ({n})"


def extract_structure_from_markdown(
    content: str,
    repository_root: Optional[str | Path] = None,
    fs: Optional[FileSystem] = None,
) -> ExtractedStructure:
    """
    Parse markdown into an ExtractedStructure.

    When ``repository_root`` is given, references to files missing from the
    repository are dropped (using ``fs``, or the local disk by default).
    """
    if repository_root is not None and fs is None:
        from codeviews.capabilities import LocalFileSystem
        fs = LocalFileSystem()
    extractor = FileReferenceExtractor(fs=fs, repository_root=repository_root)
    return MarkdownStructureParser(extractor).parse(content)
