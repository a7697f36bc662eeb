"""
Validation for CodebaseView records.

Two layers, mirroring how views reach the validator:

Layer 1: Shape (``parse_view``):
    Untrusted JSON (a hand-edited file, a stored record) is checked field by
    field and normalized into a CodebaseView. Malformed pieces become
    ``error`` issues carrying an example of the correct shape; nothing is
    raised.

Layer 2: Structure (``ViewValidator``):
    Required fields, grid bounds, coordinate uniqueness, and existence of
    every referenced file and the overview document under the repository
    root.

A view is valid when no ``error`` issue was produced. Warnings and info
never affect validity.

Used by: codeviews validate, codeviews validate-all, codeviews save
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from codeviews.capabilities import FileSystem, LocalFileSystem, strip_leading_slash
from codeviews.errors import RepositoryNotFoundError
from codeviews.models import CodebaseView, IssueSeverity

logger = logging.getLogger(__name__)

VIEW_EXAMPLE = (
    '{"name": "My View", "rows": 1, "cols": 2, "referenceGroups": '
    '{"Core": {"coordinates": [0, 0], "files": ["src/index.ts"]}}}'
)
REFERENCE_GROUPS_EXAMPLE = (
    '"referenceGroups": {"Core": {"coordinates": [0, 0], "files": ["src/index.ts"]}}'
)
GROUP_EXAMPLE = '{"coordinates": [0, 0], "files": ["src/index.ts"], "priority": 0}'
COORDINATES_EXAMPLE = '"coordinates": [0, 1]'
FILES_EXAMPLE = '"files": ["src/index.ts", "src/utils.ts"]'

_STRING_FIELDS = ("id", "version", "description", "overviewPath", "category", "timestamp")
_SAFE_ID = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")


@dataclass
class ValidationIssue:
    """A single problem found in a view."""

    severity: IssueSeverity
    message: str
    location: Optional[str] = None
    context: Optional[str] = None
    type: str = "general"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "severity": self.severity.value,
            "type": self.type,
            "message": self.message,
        }
        if self.location is not None:
            data["location"] = self.location
        if self.context is not None:
            data["context"] = self.context
        return data


@dataclass
class ValidationResult:
    """Outcome of validating one view."""

    issues: List[ValidationIssue] = field(default_factory=list)
    validated_view: Optional[CodebaseView] = None

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity is IssueSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity is IssueSeverity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for i in self.issues if i.severity is IssueSeverity.INFO)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "errors": self.error_count,
            "warnings": self.warning_count,
            "info": self.info_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "summary": self.summary,
            "issues": [i.to_dict() for i in self.issues],
        }


@dataclass
class ParsedView:
    """Result of ``parse_view``: a normalized view (if any) plus shape issues."""

    view: Optional[CodebaseView]
    issues: List[ValidationIssue] = field(default_factory=list)


def _error(message: str, location: Optional[str] = None, context: Optional[str] = None,
           type: str = "invalid_shape") -> ValidationIssue:
    return ValidationIssue(IssueSeverity.ERROR, message, location, context, type)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ── Layer 1: Shape ───────────────────────────────────────────────────────


def _parse_group(label: str, raw: Any, issues: List[ValidationIssue]) -> Optional[Dict[str, Any]]:
    """Normalize one reference group, or return None if it cannot be placed."""
    if not isinstance(raw, dict):
        issues.append(_error(
            f"Reference group '{label}' must be an object",
            location=label,
            context=f"Example: {GROUP_EXAMPLE}",
        ))
        return None

    group: Dict[str, Any] = {}

    coords = raw.get("coordinates")
    if coords is None:
        issues.append(_error(
            f"Reference group '{label}' is missing coordinates",
            location=label,
            context=f"Example: {COORDINATES_EXAMPLE}",
            type="missing_field",
        ))
        return None
    if not (isinstance(coords, list) and len(coords) == 2 and all(_is_int(c) for c in coords)):
        issues.append(_error(
            f"Reference group '{label}' has invalid coordinates: {coords!r}",
            location=label,
            context=f"Coordinates must be a [row, col] pair of integers. Example: {COORDINATES_EXAMPLE}",
        ))
        return None
    group["coordinates"] = list(coords)

    files = raw.get("files")
    if files is None:
        issues.append(_error(
            f"Reference group '{label}' is missing files",
            location=label,
            context=f"Example: {FILES_EXAMPLE}",
            type="missing_field",
        ))
        files = []
    elif not isinstance(files, list):
        issues.append(_error(
            f"Reference group '{label}' files must be a list of paths",
            location=label,
            context=f"Example: {FILES_EXAMPLE}",
        ))
        files = []
    else:
        bad = [f for f in files if not isinstance(f, str)]
        if bad:
            issues.append(_error(
                f"Reference group '{label}' has {len(bad)} non-string file entries",
                location=label,
                context=f"Example: {FILES_EXAMPLE}",
            ))
            files = [f for f in files if isinstance(f, str)]
    group["files"] = files

    priority = raw.get("priority", 0)
    if not _is_int(priority):
        issues.append(ValidationIssue(
            IssueSeverity.WARNING,
            f"Reference group '{label}' priority must be an integer; using 0",
            location=label,
            type="invalid_shape",
        ))
        priority = 0
    group["priority"] = priority
    return group


def parse_view(data: Any) -> ParsedView:
    """
    Parse untrusted JSON into a CodebaseView plus shape issues.

    Never raises. Missing ``name`` is left for the structural layer to
    report; everything here is about types and shapes.
    """
    issues: List[ValidationIssue] = []
    if not isinstance(data, dict):
        issues.append(_error(
            f"View must be a JSON object, got {type(data).__name__}",
            context=f"Example: {VIEW_EXAMPLE}",
        ))
        return ParsedView(view=None, issues=issues)

    clean: Dict[str, Any] = {}
    for key, value in data.items():
        if key in ("referenceGroups", "rows", "cols", "name", "displayOrder", "metadata"):
            continue
        if key in _STRING_FIELDS and not isinstance(value, str):
            issues.append(_error(f"Field '{key}' must be a string", location=key))
            continue
        if key == "id" and value and (not _SAFE_ID.match(value) or ".." in value):
            issues.append(_error(
                "Field 'id' must be a slug like 'my-view'",
                location="id",
                context=f"Got {value!r}",
            ))
            continue
        clean[key] = value

    name = data.get("name", "")
    if not isinstance(name, str):
        issues.append(_error("Field 'name' must be a string", location="name"))
        name = ""
    clean["name"] = name

    for key in ("rows", "cols"):
        value = data.get(key, 1)
        if not _is_int(value):
            issues.append(_error(f"Field '{key}' must be an integer", location=key))
            value = 1
        clean[key] = value

    order = data.get("displayOrder", 0)
    if not _is_int(order):
        issues.append(ValidationIssue(
            IssueSeverity.WARNING, "Field 'displayOrder' must be an integer; using 0",
            location="displayOrder", type="invalid_shape",
        ))
        order = 0
    clean["displayOrder"] = order

    metadata = data.get("metadata")
    if metadata is not None:
        if isinstance(metadata, dict):
            clean["metadata"] = metadata
        else:
            issues.append(ValidationIssue(
                IssueSeverity.WARNING, "Field 'metadata' must be an object; ignoring it",
                location="metadata", type="invalid_shape",
            ))

    groups_raw = data.get("referenceGroups")
    groups: Dict[str, Any] = {}
    if groups_raw is None:
        issues.append(_error(
            "View is missing required field 'referenceGroups'",
            location="referenceGroups",
            context=f"Example: {REFERENCE_GROUPS_EXAMPLE}",
            type="missing_field",
        ))
    elif not isinstance(groups_raw, dict):
        issues.append(_error(
            "'referenceGroups' must be an object keyed by group name",
            location="referenceGroups",
            context=f"Example: {REFERENCE_GROUPS_EXAMPLE}",
        ))
    else:
        for label, raw in groups_raw.items():
            group = _parse_group(str(label), raw, issues)
            if group is not None:
                groups[str(label)] = group
    clean["referenceGroups"] = groups

    try:
        view = CodebaseView.model_validate(clean)
    except ValidationError as e:
        issues.append(_error(f"View could not be parsed: {e}"))
        return ParsedView(view=None, issues=issues)
    return ParsedView(view=view, issues=issues)


# ── Layer 2: Structure ───────────────────────────────────────────────────


class ViewValidator:
    """
    Check a view against its own invariants and the repository on disk.

    Example:
        validator = ViewValidator(LocalFileSystem())
        result = validator.validate(view, "/path/to/repo")
        if not result.is_valid:
            for issue in result.issues:
                print(issue.severity.value, issue.message)
    """

    def __init__(self, fs: Optional[FileSystem] = None):
        self.fs = fs or LocalFileSystem()

    def validate(
        self,
        view: Union[CodebaseView, Dict[str, Any]],
        repository_root: str | Path,
    ) -> ValidationResult:
        """Validate a view (model or raw dict). Raises only if the root is inaccessible."""
        root = str(repository_root)
        if not self.fs.is_directory(root):
            raise RepositoryNotFoundError(root)

        issues: List[ValidationIssue] = []
        if isinstance(view, CodebaseView):
            parsed_view: Optional[CodebaseView] = view
        else:
            parsed = parse_view(view)
            issues.extend(parsed.issues)
            parsed_view = parsed.view

        if parsed_view is None:
            return ValidationResult(issues=issues, validated_view=None)

        self._check_required(parsed_view, issues)
        self._check_coordinates(parsed_view, issues)
        self._check_files(parsed_view, root, issues)

        result = ValidationResult(issues=issues, validated_view=parsed_view)
        logger.debug(
            f"Validated view '{parsed_view.id}': {result.summary}"
        )
        return result

    def _check_required(self, view: CodebaseView, issues: List[ValidationIssue]) -> None:
        if not view.name.strip():
            issues.append(_error(
                "View name is required",
                location="name",
                context=f"Example: {VIEW_EXAMPLE}",
                type="missing_field",
            ))
        if view.rows < 1 or view.cols < 1:
            issues.append(_error(
                f"Grid size must be positive, got rows={view.rows}, cols={view.cols}",
                location="rows/cols",
                type="invalid_grid",
            ))
        if not view.reference_groups:
            issues.append(ValidationIssue(
                IssueSeverity.INFO, "View has no reference groups",
                location="referenceGroups", type="empty_view",
            ))
        if not view.overview_path:
            issues.append(ValidationIssue(
                IssueSeverity.WARNING, "View has no overview document",
                location="overviewPath", type="missing_overview",
            ))

    def _check_coordinates(self, view: CodebaseView, issues: List[ValidationIssue]) -> None:
        seen: Dict[tuple, str] = {}
        # Non-positive sizes are reported by _check_required
        rows, cols = max(view.rows, 1), max(view.cols, 1)
        for label, group in view.reference_groups.items():
            row, col = group.row, group.col
            if not (0 <= row < rows and 0 <= col < cols):
                issues.append(_error(
                    f"Reference group '{label}' coordinates [{row}, {col}] are outside "
                    f"the {rows}x{cols} grid",
                    location=label,
                    context=f"Valid rows are 0-{rows - 1}, valid columns 0-{cols - 1}",
                    type="coordinate_bounds",
                ))
            key = (row, col)
            if key in seen:
                issues.append(_error(
                    f"Reference groups '{seen[key]}' and '{label}' share coordinates [{row}, {col}]",
                    location=label,
                    type="duplicate_coordinates",
                ))
            else:
                seen[key] = label
            if not group.files:
                issues.append(ValidationIssue(
                    IssueSeverity.INFO, f"Reference group '{label}' has no files",
                    location=label, type="empty_group",
                ))

    def _check_files(self, view: CodebaseView, root: str, issues: List[ValidationIssue]) -> None:
        for label, group in view.reference_groups.items():
            for file in group.files:
                if not self.fs.exists(os.path.join(root, strip_leading_slash(file))):
                    issues.append(_error(
                        f"File not found: {file}",
                        location=label,
                        context=file,
                        type="missing_file",
                    ))
        if view.overview_path and not self.fs.exists(
            os.path.join(root, strip_leading_slash(view.overview_path))
        ):
            issues.append(_error(
                f"Overview document not found: {view.overview_path}",
                location="overviewPath",
                context=view.overview_path,
                type="missing_overview",
            ))


# ── Batch validation ─────────────────────────────────────────────────────


@dataclass
class ViewValidated:
    """Batch item: the validator ran."""
    view_id: str
    view_name: str
    result: ValidationResult

    @property
    def success(self) -> bool:
        return self.result.is_valid


@dataclass
class ViewValidationFailed:
    """Batch item: the view could not be validated (unknown id, I/O failure)."""
    view_id: str
    view_name: str
    error: str
    success: bool = False


ViewValidationOutcome = Union[ViewValidated, ViewValidationFailed]


@dataclass
class ValidationSummary:
    """Aggregate of a batch validation run, one outcome per input item."""

    results: List[ViewValidationOutcome] = field(default_factory=list)

    @property
    def total_views(self) -> int:
        return len(self.results)

    @property
    def valid_views(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def invalid_views(self) -> int:
        return self.total_views - self.valid_views

    def _validated(self) -> Iterable[ValidationResult]:
        return (r.result for r in self.results if isinstance(r, ViewValidated))

    @property
    def total_issues(self) -> int:
        return sum(len(r.issues) for r in self._validated())

    @property
    def error_count(self) -> int:
        failed = sum(1 for r in self.results if isinstance(r, ViewValidationFailed))
        return failed + sum(r.error_count for r in self._validated())

    @property
    def warning_count(self) -> int:
        return sum(r.warning_count for r in self._validated())

    @property
    def info_count(self) -> int:
        return sum(r.info_count for r in self._validated())

    def with_issues(self) -> List[ViewValidationOutcome]:
        return [
            r for r in self.results
            if not r.success or (isinstance(r, ViewValidated) and r.result.issues)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalViews": self.total_views,
            "validViews": self.valid_views,
            "invalidViews": self.invalid_views,
            "totalIssues": self.total_issues,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "infoCount": self.info_count,
        }


def validate_views(
    views: Sequence[CodebaseView],
    validator: ViewValidator,
    repository_root: str | Path,
) -> ValidationSummary:
    """Validate each view, continuing past per-view I/O failures."""
    summary = ValidationSummary()
    for view in views:
        try:
            result = validator.validate(view, repository_root)
        except OSError as e:
            logger.warning(f"Could not validate view {view.id}: {e}")
            summary.results.append(ViewValidationFailed(view.id, view.name, str(e)))
            continue
        summary.results.append(ViewValidated(view.id, view.name, result))
    return summary


def validate_specific_views(
    views: Sequence[CodebaseView],
    identifiers: Sequence[str],
    validator: ViewValidator,
    repository_root: str | Path,
) -> ValidationSummary:
    """Validate the views named by id or name; unknown identifiers become failures."""
    summary = ValidationSummary()
    for identifier in identifiers:
        view = find_view(views, identifier)
        if view is None:
            summary.results.append(
                ViewValidationFailed(identifier, identifier, f"View not found: {identifier}")
            )
            continue
        summary.results.extend(validate_views([view], validator, repository_root).results)
    return summary


def find_view(views: Iterable[CodebaseView], identifier: str) -> Optional[CodebaseView]:
    """Look a view up by id, then by name."""
    views = list(views)
    for view in views:
        if view.id == identifier:
            return view
    for view in views:
        if view.name == identifier:
            return view
    return None
