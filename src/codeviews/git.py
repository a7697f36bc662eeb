"""
Git helpers. Only the origin remote is ever read.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def get_git_remote_url(repository_root: str | Path) -> Optional[str]:
    """Return ``remote.origin.url``, or None when git or the remote is unavailable."""
    try:
        result = subprocess.run(
            ["git", "config", "--get", "remote.origin.url"],
            cwd=str(repository_root),
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"git unavailable: {e}")
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None
