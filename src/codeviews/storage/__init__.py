"""
View storage backends.

Provides a common interface for persisting CodebaseViews:
- FileViewStore: JSON files under <repo>/.codeviews/views/ (default)
- MemoryViewStore: in-process dict, for tests and previews

Usage:
    from codeviews.storage import get_view_store

    store = get_view_store()          # file store
    store.save(repo_root, view)
    views = store.list(repo_root)
"""

from codeviews.storage.base import (
    BaseViewStore,
    StorageType,
    StoredRecord,
    ViewStore,
    get_view_store,
    register_backend,
)
from codeviews.storage.file import DEFAULT_DATA_DIR, DEFAULT_VIEWS_DIR, FileViewStore
from codeviews.storage.memory import MemoryViewStore

__all__ = [
    "BaseViewStore",
    "StorageType",
    "StoredRecord",
    "ViewStore",
    "get_view_store",
    "register_backend",
    "DEFAULT_DATA_DIR",
    "DEFAULT_VIEWS_DIR",
    "FileViewStore",
    "MemoryViewStore",
]
