"""
Repository discovery and the per-run context.

A RepositoryContext bundles everything one command needs to work on a
repository: the root, the filesystem and glob capabilities, the view store,
process settings and the project rc file. It is built once by the caller
and passed down; nothing below it looks up global state.

Usage:
    ctx = RepositoryContext.open(".")
    for view in ctx.store.list(ctx.root):
        print(view.id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from codeviews.capabilities import FileSystem, GlobMatcher, LocalFileSystem, PathGlobMatcher
from codeviews.config import CodeviewsSettings, ProjectConfig, get_settings, load_project_config
from codeviews.errors import PathOutsideRepositoryError, RepositoryNotFoundError
from codeviews.models import utc_timestamp
from codeviews.storage import StoredRecord, ViewStore, get_view_store
from codeviews.validation import (
    ValidationSummary,
    ViewValidated,
    ViewValidationFailed,
    ViewValidationOutcome,
    ViewValidator,
)

logger = logging.getLogger(__name__)

GIT_DIR = ".git"


def find_repository_root(start: str | Path = ".") -> Path:
    """
    Walk up from ``start`` to the nearest directory containing ``.git``.

    Raises:
        RepositoryNotFoundError: ``start`` does not exist, or no ancestor
            holds a ``.git`` entry.
    """
    path = Path(start).expanduser().resolve()
    if not path.exists():
        raise RepositoryNotFoundError(str(start))
    if path.is_file():
        path = path.parent

    for candidate in (path, *path.parents):
        if (candidate / GIT_DIR).exists():
            return candidate
    raise RepositoryNotFoundError(str(start), reason="is not inside a git repository")


@dataclass
class RepositoryContext:
    """Capabilities and configuration for one repository."""

    root: Path
    fs: FileSystem
    matcher: GlobMatcher
    store: ViewStore
    settings: CodeviewsSettings = field(default_factory=get_settings)
    project_config: ProjectConfig = field(default_factory=ProjectConfig)
    validator: Optional[ViewValidator] = None

    def __post_init__(self) -> None:
        if self.validator is None:
            self.validator = ViewValidator(self.fs)

    @classmethod
    def open(
        cls,
        path: str | Path = ".",
        settings: Optional[CodeviewsSettings] = None,
        store: Optional[ViewStore] = None,
        fs: Optional[FileSystem] = None,
        matcher: Optional[GlobMatcher] = None,
    ) -> "RepositoryContext":
        """
        Locate the repository containing ``path`` and wire up its context.

        Raises:
            RepositoryNotFoundError: no repository contains ``path``.
            ConfigError: the repository rc file is invalid.
        """
        settings = settings or get_settings()
        root = find_repository_root(path)
        matcher = matcher or PathGlobMatcher()
        fs = fs or LocalFileSystem(matcher)
        validator = ViewValidator(fs)
        if store is None:
            store = get_view_store(
                settings.storage_type,
                data_dir=settings.data_dir,
                views_dir=settings.views_dir,
                validator=validator,
            )
        project_config = load_project_config(root)
        logger.debug(f"Opened repository {root}")
        return cls(
            root=root,
            fs=fs,
            matcher=matcher,
            store=store,
            settings=settings,
            project_config=project_config,
            validator=validator,
        )

    @property
    def data_dir(self) -> str:
        return self.settings.data_dir

    def relative_path(self, path: str | Path) -> str:
        """
        Repository-relative POSIX form of ``path``.

        Relative paths are taken as relative to the repository root.

        Raises:
            PathOutsideRepositoryError: ``path`` resolves outside the root.
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        resolved = candidate.resolve()
        try:
            return resolved.relative_to(self.root.resolve()).as_posix()
        except ValueError:
            raise PathOutsideRepositoryError(str(path), str(self.root)) from None


def stamp_view(
    store: ViewStore,
    repository_root: str | Path,
    view_id: str,
    timestamp: Optional[str] = None,
) -> bool:
    """
    Refresh a view's timestamp without touching anything else.

    Returns False, leaving the store untouched, when no view has ``view_id``.
    """
    view = store.get(repository_root, view_id)
    if view is None:
        logger.debug(f"Stamp skipped: no view {view_id}")
        return False
    view.timestamp = timestamp or utc_timestamp()
    store.save(repository_root, view)
    logger.info(f"Stamped view {view_id} at {view.timestamp}")
    return True


def _record_name(record: StoredRecord) -> str:
    if isinstance(record.data, dict):
        name = record.data.get("name")
        if isinstance(name, str) and name.strip():
            return name
    return record.view_id


def validate_record(ctx: RepositoryContext, record: StoredRecord) -> ViewValidationOutcome:
    """
    Validate one stored view from its raw JSON.

    Files that could not be read or decoded come back as failures; anything
    that decoded goes through the full validator, so views the model would
    reject still get a result with their errors listed.
    """
    name = _record_name(record)
    if record.error is not None:
        return ViewValidationFailed(record.view_id, name, record.error)
    try:
        result = ctx.validator.validate(record.data, ctx.root)
    except OSError as e:
        logger.warning(f"Could not validate view {record.view_id}: {e}")
        return ViewValidationFailed(record.view_id, name, str(e))
    view_id = result.validated_view.id if result.validated_view else record.view_id
    return ViewValidated(view_id, name, result)


def find_record(records: Iterable[StoredRecord], identifier: str) -> Optional[StoredRecord]:
    """Look a stored view up by id, then by name."""
    records = list(records)
    for record in records:
        if record.view_id == identifier:
            return record
    for record in records:
        if _record_name(record) == identifier:
            return record
    return None


def validate_all_views(ctx: RepositoryContext) -> ValidationSummary:
    """Validate every stored view of the repository, unreadable ones included."""
    return ValidationSummary([validate_record(ctx, r) for r in ctx.store.records(ctx.root)])


def validate_views_by_identifier(
    ctx: RepositoryContext, identifiers: Sequence[str]
) -> ValidationSummary:
    """Validate the named views (by id or name); unknown names become failures."""
    records = ctx.store.records(ctx.root)
    summary = ValidationSummary()
    for identifier in identifiers:
        record = find_record(records, identifier)
        if record is None:
            summary.results.append(
                ViewValidationFailed(identifier, identifier, f"View not found: {identifier}")
            )
            continue
        summary.results.append(validate_record(ctx, record))
    return summary


def overview_paths(ctx: RepositoryContext) -> List[str]:
    """Overview paths of all stored views, with a leading ``./`` removed."""
    paths = []
    for view in ctx.store.list(ctx.root):
        if view.overview_path:
            paths.append(strip_dot_slash(view.overview_path))
    return paths


def strip_dot_slash(path: str) -> str:
    return path[2:] if path.startswith("./") else path
