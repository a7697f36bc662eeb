"""
Base view store protocol and factory.

Defines the interface that all view store backends must implement.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Type, runtime_checkable

from codeviews.errors import StorageError
from codeviews.models import CodebaseView
from codeviews.validation import ValidationResult, ViewValidator

logger = logging.getLogger(__name__)


class StorageType(str, Enum):
    """Available view store backend types."""
    FILE = "file"
    MEMORY = "memory"


@dataclass
class StoredRecord:
    """A stored view as raw JSON, or the reason it could not be read."""
    view_id: str
    data: Any = None
    error: Optional[str] = None


@runtime_checkable
class ViewStore(Protocol):
    """
    Protocol defining the view store interface.

    Views are keyed by ``(repository_root, view.id)``; saving a view whose
    id already exists replaces it entirely.
    """

    def get(self, repository_root: str | Path, view_id: str) -> Optional[CodebaseView]:
        """Get a view by id, or None."""
        ...

    def list(self, repository_root: str | Path) -> List[CodebaseView]:
        """List all views, ordered by (displayOrder, id)."""
        ...

    def records(self, repository_root: str | Path) -> List[StoredRecord]:
        """Every stored view as raw data, including ones that do not load."""
        ...

    def save(self, repository_root: str | Path, view: CodebaseView) -> None:
        """Persist a view. Raises StorageError on failure."""
        ...

    def save_with_validation(
        self, repository_root: str | Path, view: CodebaseView
    ) -> ValidationResult:
        """Validate, persist regardless of the outcome, return the result."""
        ...

    def delete(self, repository_root: str | Path, view_id: str) -> bool:
        """Remove a view; returns whether it existed."""
        ...


class BaseViewStore(ABC):
    """
    Abstract base class for view stores.

    Provides validated saves and display-order assignment on top of the
    backend-specific primitives.
    """

    def __init__(self, validator: Optional[ViewValidator] = None):
        self.validator = validator or ViewValidator()

    @abstractmethod
    def get(self, repository_root: str | Path, view_id: str) -> Optional[CodebaseView]:
        pass

    @abstractmethod
    def list(self, repository_root: str | Path) -> List[CodebaseView]:
        pass

    @abstractmethod
    def records(self, repository_root: str | Path) -> List[StoredRecord]:
        pass

    @abstractmethod
    def _write(self, repository_root: str | Path, view: CodebaseView) -> None:
        pass

    @abstractmethod
    def delete(self, repository_root: str | Path, view_id: str) -> bool:
        pass

    def save(self, repository_root: str | Path, view: CodebaseView) -> None:
        """Persist a view, assigning a display order to new views that lack one."""
        if not view.id:
            raise StorageError("Cannot save a view without an id")
        if view.display_order == 0 and self.get(repository_root, view.id) is None:
            view.display_order = self._next_display_order(repository_root, view.category)
        self._write(repository_root, view)

    def save_with_validation(
        self, repository_root: str | Path, view: CodebaseView
    ) -> ValidationResult:
        result = self.validator.validate(view, repository_root)
        self.save(repository_root, result.validated_view or view)
        if not result.is_valid:
            logger.info(
                f"Saved view '{view.id}' with {result.error_count} validation error(s)"
            )
        return result

    def _next_display_order(self, repository_root: str | Path, category: str) -> int:
        orders = [v.display_order for v in self.list(repository_root) if v.category == category]
        return max(orders, default=0) + 1


# View store backend registry
_BACKENDS: Dict[StorageType, Type[BaseViewStore]] = {}


def register_backend(storage_type: StorageType):
    """Decorator to register a view store backend."""
    def decorator(cls: Type[BaseViewStore]) -> Type[BaseViewStore]:
        _BACKENDS[storage_type] = cls
        return cls
    return decorator


def get_view_store(
    storage_type: StorageType | str = StorageType.FILE,
    **kwargs: Any,
) -> BaseViewStore:
    """
    Get a view store instance.

    Args:
        storage_type: Backend to use ("file" or "memory")
        **kwargs: Backend-specific options (e.g. data_dir, validator)
    """
    # Import backends to register them
    from codeviews.storage import file, memory  # noqa: F401

    storage_type = StorageType(storage_type)
    if storage_type not in _BACKENDS:
        raise ValueError(f"Unknown storage type: {storage_type}")
    return _BACKENDS[storage_type](**kwargs)
