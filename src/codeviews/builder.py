"""
Build CodebaseViews from markdown overview documents.

ViewBuilder reads a document, extracts its section structure (keeping only
references to files that exist in the repository), fills in name and
description fallbacks, and hands the view to the store.

Per-document problems (outside the repository, missing, unreadable) come
back as ViewCreationFailure results; nothing here raises for them, so a
batch always yields one result per input document.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from codeviews.errors import PathOutsideRepositoryError, StorageError
from codeviews.models import (
    VIEW_SCHEMA_VERSION,
    CodebaseView,
    GenerationType,
    UIConfig,
    ViewMetadata,
    generate_view_id,
    utc_timestamp,
)
from codeviews.parsing import FileReferenceExtractor, MarkdownStructureParser
from codeviews.repository import RepositoryContext, overview_paths
from codeviews.validation import ValidationResult

logger = logging.getLogger(__name__)

DOCUMENT_PATTERNS = ("**/*.md", "**/*.markdown", "**/*.mdx")
DEFAULT_CATEGORY = "docs"

_WORD_START = re.compile(r"\b\w")


def _title_case(text: str) -> str:
    # Upper-cases word starts only; the rest of each word is left alone
    return _WORD_START.sub(lambda m: m.group(0).upper(), text)


def generate_view_name_from_path(path: str) -> str:
    """
    Readable view name from a document path.

        "README.md"                 -> "README"
        "docs/getting-started.md"   -> "Docs - Getting Started"
        "docs/api_v2/auth.md"       -> "Docs Api V2 - Auth"
    """
    p = Path(path)
    file_part = _title_case(re.sub(r"[-_]", " ", p.stem))
    parent = p.parent.as_posix()
    if parent in (".", ""):
        return file_part
    dir_part = _title_case(re.sub(r"[-_/]", " ", parent))
    return f"{dir_part} - {file_part}"


@dataclass
class ViewCreationOptions:
    category: str = DEFAULT_CATEGORY
    name: Optional[str] = None
    description: Optional[str] = None
    skip_validation: bool = False
    dry_run: bool = False


@dataclass
class ViewCreationSuccess:
    file: str
    view: CodebaseView
    issues: int = 0
    saved: bool = True
    validation: Optional[ValidationResult] = None
    success: bool = True

    @property
    def view_id(self) -> str:
        return self.view.id

    @property
    def view_name(self) -> str:
        return self.view.name


@dataclass
class ViewCreationFailure:
    file: str
    error: str
    success: bool = False


ViewCreationResult = Union[ViewCreationSuccess, ViewCreationFailure]


@dataclass
class CreationStats:
    successful: int = 0
    failed: int = 0
    total: int = 0
    total_issues: int = 0
    total_files: int = 0
    total_cells: int = 0
    failures: List[ViewCreationFailure] = field(default_factory=list)
    successes: List[ViewCreationSuccess] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "successful": self.successful,
            "failed": self.failed,
            "total": self.total,
            "totalIssues": self.total_issues,
            "totalFiles": self.total_files,
            "totalCells": self.total_cells,
        }


def creation_stats(results: Sequence[ViewCreationResult]) -> CreationStats:
    """Totals over a batch of creation results."""
    stats = CreationStats(total=len(results))
    for result in results:
        if isinstance(result, ViewCreationSuccess):
            stats.successful += 1
            stats.successes.append(result)
            stats.total_issues += result.issues
            stats.total_files += result.view.file_count
            stats.total_cells += len(result.view.reference_groups)
        else:
            stats.failed += 1
            stats.failures.append(result)
    return stats


class ViewBuilder:
    """
    Turns overview documents into stored views.

    Usage:
        builder = ViewBuilder(RepositoryContext.open("."))
        result = builder.build_view("docs/architecture.md")
        if result.success:
            print(result.view.id, result.issues)
    """

    def __init__(self, ctx: RepositoryContext):
        self.ctx = ctx
        self.parser = MarkdownStructureParser(
            FileReferenceExtractor(fs=ctx.fs, repository_root=ctx.root)
        )

    def build_view(
        self, path: str | Path, options: Optional[ViewCreationOptions] = None
    ) -> ViewCreationResult:
        options = options or ViewCreationOptions()
        file_label = str(path)

        try:
            relative = self.ctx.relative_path(path)
        except PathOutsideRepositoryError:
            return ViewCreationFailure(file_label, f"File must be within repository: {path}")

        full_path = self.ctx.root / relative
        if not self.ctx.fs.exists(full_path):
            return ViewCreationFailure(relative, f"File not found: {relative}")

        try:
            content = self.ctx.fs.read_file(full_path)
        except (OSError, UnicodeDecodeError) as e:
            return ViewCreationFailure(relative, f"Cannot read file: {e}")

        structure = self.parser.parse(content)

        if options.name:
            name = options.name
        elif structure.has_title:
            name = structure.name
        else:
            name = generate_view_name_from_path(relative)
        description = (
            options.description
            or structure.description
            or f"Documentation-based view for {relative}"
        )

        view = CodebaseView(
            id=generate_view_id(name),
            version=VIEW_SCHEMA_VERSION,
            name=name,
            description=description,
            rows=structure.rows,
            cols=structure.cols,
            reference_groups=structure.reference_groups,
            overview_path=relative,
            category=options.category,
            display_order=0,
            timestamp=utc_timestamp(),
            metadata=ViewMetadata(
                generation_type=GenerationType.USER,
                ui=UIConfig(
                    enabled=True,
                    rows=structure.rows,
                    cols=structure.cols,
                    show_cell_labels=True,
                    cell_label_position="top",
                ),
            ),
        )

        if options.dry_run:
            logger.debug(f"Dry run: built view {view.id} from {relative}")
            return ViewCreationSuccess(relative, view, saved=False)

        try:
            if options.skip_validation:
                self.ctx.store.save(self.ctx.root, view)
                return ViewCreationSuccess(relative, view)
            result = self.ctx.store.save_with_validation(self.ctx.root, view)
        except StorageError as e:
            return ViewCreationFailure(relative, str(e))

        logger.info(f"Created view {view.id} from {relative} ({len(result.issues)} issue(s))")
        return ViewCreationSuccess(
            relative,
            result.validated_view or view,
            issues=len(result.issues),
            validation=result,
        )

    def build_views(
        self,
        documents: Sequence[str | Path],
        options: Optional[ViewCreationOptions] = None,
    ) -> List[ViewCreationResult]:
        """One result per document, in input order."""
        return [self.build_view(doc, options) for doc in documents]


def list_documents(ctx: RepositoryContext, extra_excludes: Sequence[str] = ()) -> List[str]:
    """
    Markdown documents of the repository.

    Skips the codeviews data directory and the rc file's exclude patterns;
    ``.gitignore`` is applied unless the rc file turns it off.
    """
    return ctx.fs.list_files(
        ctx.root,
        DOCUMENT_PATTERNS,
        exclude_patterns=[
            f"{ctx.data_dir}/**",
            *ctx.project_config.exclude_patterns,
            *extra_excludes,
        ],
        respect_gitignore=ctx.project_config.use_gitignore,
    )


def find_untracked_documents(ctx: RepositoryContext) -> List[str]:
    """Markdown documents that no stored view uses as its overview."""
    tracked = set(overview_paths(ctx))
    return [doc for doc in list_documents(ctx) if doc not in tracked]
