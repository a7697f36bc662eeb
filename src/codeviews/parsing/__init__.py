"""
Markdown parsing for codeviews.

Example usage:
    from codeviews.parsing import extract_structure_from_markdown

    structure = extract_structure_from_markdown(text, repository_root="/repo")
    for label, group in structure.reference_groups.items():
        print(label, group.coordinates, group.files)
"""

from codeviews.parsing.markdown import (
    DEFAULT_TITLE,
    MAX_GRID_COLUMNS,
    ExtractedStructure,
    MarkdownStructureParser,
    extract_structure_from_markdown,
)
from codeviews.parsing.references import (
    DEFAULT_REFERENCE_EXTENSIONS,
    FileReferenceExtractor,
    LineClassifier,
    LineKind,
)

__all__ = [
    "DEFAULT_TITLE",
    "MAX_GRID_COLUMNS",
    "ExtractedStructure",
    "MarkdownStructureParser",
    "extract_structure_from_markdown",
    "DEFAULT_REFERENCE_EXTENSIONS",
    "FileReferenceExtractor",
    "LineClassifier",
    "LineKind",
]
