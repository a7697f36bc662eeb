"""
Shared CLI plumbing: the per-invocation state object and error mapping.
"""

from __future__ import annotations

import json as _json
from dataclasses import dataclass, field
from functools import wraps
from pathlib import Path
from typing import Any, Optional

import click

from codeviews.config import get_settings
from codeviews.errors import CodeviewsError
from codeviews.repository import RepositoryContext


@dataclass
class CliState:
    """Options of the top-level group; the repository is opened on first use."""
    path: str = "."
    verbose: bool = False
    _repo: Optional[RepositoryContext] = field(default=None, repr=False)

    @property
    def repo(self) -> RepositoryContext:
        if self._repo is None:
            try:
                self._repo = RepositoryContext.open(self.path, settings=get_settings())
            except CodeviewsError as e:
                raise click.ClickException(str(e)) from e
        return self._repo


pass_state = click.make_pass_decorator(CliState, ensure=True)


def handle_errors(f):
    """Turn codeviews errors raised by a command into ``Error: ...`` and exit 1."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except CodeviewsError as e:
            raise click.ClickException(str(e)) from e
    return wrapper


def echo_json(data: Any) -> None:
    click.echo(_json.dumps(data, indent=2))


def resolve_document(document: str) -> str:
    """
    Interpret a document argument from the command line.

    Paths are taken relative to the working directory first, then relative
    to the repository root.
    """
    candidate = Path(document)
    if candidate.is_absolute() or candidate.exists():
        return str(candidate.resolve())
    return document
