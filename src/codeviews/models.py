"""
Pydantic models for CodebaseView records.

A CodebaseView maps a markdown overview document to a grid of named
reference groups, each holding repository-relative file paths. The JSON
field names match the persisted format (camelCase); Python code may use
either the alias or the snake_case attribute name.

Example:
    view = CodebaseView(
        name="Storage Layer",
        rows=1,
        cols=2,
        referenceGroups={
            "Backends": ReferenceGroup(coordinates=[0, 0], files=["src/store.ts"]),
            "Models": ReferenceGroup(coordinates=[0, 1], files=["src/models.ts"]),
        },
        overviewPath="docs/storage.md",
    )
    view.id  # "storage-layer"
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

VIEW_SCHEMA_VERSION = "1.0.0"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def generate_view_id(name: str) -> str:
    """
    Derive a stable slug from a view name.

    Lowercases, collapses runs of non-alphanumeric characters into a single
    hyphen and trims hyphens from both ends. Different names may collide.
    """
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 timestamp in UTC (defaults to now)."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None if it is not one."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GenerationType(str, Enum):
    """How a view came to exist."""
    USER = "user"
    AUTO = "auto"


class IssueSeverity(str, Enum):
    """Severity attached to validation issues and lint violations."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ReferenceGroup(BaseModel):
    """A named, coordinate-addressed collection of files inside a view."""
    model_config = ConfigDict(populate_by_name=True)

    coordinates: List[int] = Field(..., description="[row, col], zero-indexed")
    files: List[str] = Field(default_factory=list, description="Repository-relative paths")
    priority: int = Field(default=0, description="Display/sort hint")

    @field_validator("coordinates")
    @classmethod
    def check_pair(cls, v: List[int]) -> List[int]:
        if len(v) != 2:
            raise ValueError("coordinates must be a [row, col] pair")
        return v

    @field_validator("files")
    @classmethod
    def dedupe_files(cls, v: List[str]) -> List[str]:
        # dict preserves first-seen order
        return list(dict.fromkeys(v))

    @property
    def row(self) -> int:
        return self.coordinates[0]

    @property
    def col(self) -> int:
        return self.coordinates[1]


class UIConfig(BaseModel):
    """Presentation settings; no validation semantics attach to these."""
    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = True
    rows: int = 1
    cols: int = 1
    show_cell_labels: bool = Field(default=True, alias="showCellLabels")
    cell_label_position: str = Field(default="top", alias="cellLabelPosition")


class ViewMetadata(BaseModel):
    """Auxiliary record carried alongside a view."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    generation_type: GenerationType = Field(
        default=GenerationType.USER, alias="generationType"
    )
    ui: Optional[UIConfig] = None


class CodebaseView(BaseModel):
    """
    A persisted CodebaseView.

    Structural invariants (coordinate bounds and uniqueness, file existence)
    are deliberately not enforced here: a view loaded from disk may have gone
    stale, and ViewValidator reports every defect instead of rejecting the
    record outright.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(default="", description="Stable slug, unique per repository")
    version: str = Field(default=VIEW_SCHEMA_VERSION, description="Schema version tag")
    name: str = Field(default="", description="Human-readable title")
    description: str = Field(default="", description="Human-readable summary")
    rows: int = Field(default=1, description="Logical grid rows")
    cols: int = Field(default=1, description="Logical grid columns")
    reference_groups: Dict[str, ReferenceGroup] = Field(
        default_factory=dict, alias="referenceGroups"
    )
    overview_path: str = Field(default="", alias="overviewPath")
    category: str = Field(default="other")
    display_order: int = Field(default=0, alias="displayOrder")
    timestamp: str = Field(default_factory=utc_timestamp)
    metadata: Optional[ViewMetadata] = None

    @model_validator(mode="after")
    def derive_id(self) -> "CodebaseView":
        if not self.id and self.name:
            self.id = generate_view_id(self.name)
        return self

    @property
    def file_count(self) -> int:
        return sum(len(group.files) for group in self.reference_groups.values())

    def all_files(self) -> List[str]:
        """Every referenced file across groups, in group order."""
        return [f for group in self.reference_groups.values() for f in group.files]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CodebaseView":
        """Build from a persisted dict. Raises pydantic.ValidationError on bad shape."""
        return cls.model_validate(data)
