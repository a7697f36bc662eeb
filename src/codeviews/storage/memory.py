"""
In-memory view store for tests and dry runs.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from codeviews.models import CodebaseView
from codeviews.storage.base import BaseViewStore, StorageType, StoredRecord, register_backend
from codeviews.validation import ViewValidator


@register_backend(StorageType.MEMORY)
class MemoryViewStore(BaseViewStore):
    """View store keeping serialized views in a dict keyed by (root, id)."""

    def __init__(self, validator: Optional[ViewValidator] = None, **_: Any):
        super().__init__(validator=validator)
        self._views: Dict[Tuple[str, str], Dict[str, Any]] = {}

    @staticmethod
    def _key(repository_root: str | Path, view_id: str) -> Tuple[str, str]:
        return (str(Path(repository_root)), view_id)

    def get(self, repository_root: str | Path, view_id: str) -> Optional[CodebaseView]:
        data = self._views.get(self._key(repository_root, view_id))
        return CodebaseView.from_dict(data) if data is not None else None

    def list(self, repository_root: str | Path) -> List[CodebaseView]:
        root = str(Path(repository_root))
        views = [CodebaseView.from_dict(d) for (r, _), d in self._views.items() if r == root]
        return sorted(views, key=lambda v: (v.display_order, v.id))

    def records(self, repository_root: str | Path) -> List[StoredRecord]:
        root = str(Path(repository_root))
        return [
            StoredRecord(view_id, data=copy.deepcopy(d))
            for (r, view_id), d in sorted(self._views.items())
            if r == root
        ]

    def _write(self, repository_root: str | Path, view: CodebaseView) -> None:
        self._views[self._key(repository_root, view.id)] = view.to_dict()

    def delete(self, repository_root: str | Path, view_id: str) -> bool:
        return self._views.pop(self._key(repository_root, view_id), None) is not None
