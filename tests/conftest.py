"""
Pytest configuration and fixtures for codeviews tests.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Generator

import pytest

from codeviews.config import reset_settings
from codeviews.logger import ROOT_LOGGER
from codeviews.repository import RepositoryContext
from codeviews.storage import MemoryViewStore


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> Generator[None, None, None]:
    """Keep CODEVIEWS_* variables from the host out of every test."""
    for key in list(os.environ):
        if key.startswith("CODEVIEWS_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo handlers installed by configure_logging (the CLI calls it)."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ============================================================================
# Repository Fixtures
# ============================================================================


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """An empty git repository (just a .git directory)."""
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    return root


@pytest.fixture
def write(repo: Path) -> Callable[..., Path]:
    """Write a file relative to the repository root, creating parents."""
    def _write(relative: str, content: str = "") -> Path:
        path = repo / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def ctx(repo: Path) -> RepositoryContext:
    """Repository context with the default file-backed store."""
    return RepositoryContext.open(repo)


@pytest.fixture
def memory_ctx(repo: Path) -> RepositoryContext:
    """Repository context backed by an in-memory view store."""
    return RepositoryContext.open(repo, store=MemoryViewStore())


# ============================================================================
# Document Fixtures
# ============================================================================


MY_VIEW_MARKDOWN = """\
# My View
Intro paragraph.

## Section A
See `src/a.ts` and `src/b.ts`.

## Section B
Nothing here.
"""


@pytest.fixture
def my_view_markdown() -> str:
    return MY_VIEW_MARKDOWN
