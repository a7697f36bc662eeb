"""
File-based view store.

Stores one JSON document per view under <repo>/.codeviews/views/<id>.json
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from codeviews.errors import StorageError
from codeviews.models import CodebaseView
from codeviews.storage.base import BaseViewStore, StorageType, StoredRecord, register_backend
from codeviews.validation import ViewValidator

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = ".codeviews"
DEFAULT_VIEWS_DIR = "views"


@register_backend(StorageType.FILE)
class FileViewStore(BaseViewStore):
    """
    File-based view store.

    Data layout:
        <repository_root>/
        └── .codeviews/
            └── views/
                ├── <view_id>.json
                └── ...
    """

    def __init__(
        self,
        data_dir: str = DEFAULT_DATA_DIR,
        views_dir: str = DEFAULT_VIEWS_DIR,
        validator: Optional[ViewValidator] = None,
    ):
        super().__init__(validator=validator)
        self.data_dir = data_dir
        self.views_dir = views_dir

    def views_path(self, repository_root: str | Path) -> Path:
        """Directory holding the view files of a repository."""
        return Path(repository_root) / self.data_dir / self.views_dir

    def view_path(self, repository_root: str | Path, view_id: str) -> Path:
        """
        File holding one view.

        Raises:
            StorageError: the id would place the file outside the views directory.
        """
        views_dir = self.views_path(repository_root)
        file_path = views_dir / f"{view_id}.json"
        if file_path.resolve().parent != views_dir.resolve():
            raise StorageError(f"Invalid view id: {view_id!r}")
        return file_path

    def _load(self, file_path: Path) -> Optional[CodebaseView]:
        try:
            with open(file_path, encoding="utf-8") as f:
                data = json.load(f)
            return CodebaseView.from_dict(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Skipping unreadable view {file_path}: {e}")
            return None

    def get(self, repository_root: str | Path, view_id: str) -> Optional[CodebaseView]:
        file_path = self.view_path(repository_root, view_id)
        if not file_path.exists():
            return None
        return self._load(file_path)

    def list(self, repository_root: str | Path) -> List[CodebaseView]:
        views_dir = self.views_path(repository_root)
        if not views_dir.is_dir():
            return []
        views = []
        for file_path in sorted(views_dir.glob("*.json")):
            view = self._load(file_path)
            if view is not None:
                views.append(view)
        return sorted(views, key=lambda v: (v.display_order, v.id))

    def records(self, repository_root: str | Path) -> List[StoredRecord]:
        views_dir = self.views_path(repository_root)
        if not views_dir.is_dir():
            return []
        records = []
        for file_path in sorted(views_dir.glob("*.json")):
            view_id = file_path.stem
            try:
                with open(file_path, encoding="utf-8") as f:
                    records.append(StoredRecord(view_id, data=json.load(f)))
            except OSError as e:
                records.append(StoredRecord(view_id, error=f"Cannot read {file_path.name}: {e}"))
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                records.append(StoredRecord(view_id, error=f"Invalid JSON in {file_path.name}: {e}"))
        return records

    def _write(self, repository_root: str | Path, view: CodebaseView) -> None:
        file_path = self.view_path(repository_root, view.id)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(view.to_dict(), f, indent=2)
                f.write("\n")
        except OSError as e:
            raise StorageError(f"Could not write view {view.id} to {file_path}: {e}") from e
        logger.debug(f"Saved view {view.id} to {file_path}")

    def delete(self, repository_root: str | Path, view_id: str) -> bool:
        file_path = self.view_path(repository_root, view_id)
        if not file_path.exists():
            return False
        try:
            file_path.unlink()
        except OSError as e:
            raise StorageError(f"Could not delete view {view_id}: {e}") from e
        logger.debug(f"Deleted view {view_id}")
        return True
