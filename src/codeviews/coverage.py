"""
Context coverage: which source files of a repository are referenced by at
least one stored view.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from codeviews.capabilities import FileSystem, strip_leading_slash
from codeviews.models import CodebaseView
from codeviews.storage.file import DEFAULT_DATA_DIR

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".py", ".rb", ".go", ".java", ".cpp", ".c", ".h", ".rs",
    ".swift", ".kt", ".scala", ".php", ".cs",
    ".vue", ".svelte", ".astro",
    ".md", ".mdx", ".json", ".yaml", ".yml", ".toml", ".xml",
    ".css", ".scss", ".sass", ".less", ".html",
)

ALWAYS_IGNORED: tuple[str, ...] = (
    "**/node_modules/**",
    "**/.git/**",
    "**/dist/**",
    "**/build/**",
    "**/coverage/**",
    "**/*.log",
    "**/.DS_Store",
    "**/Thumbs.db",
)

NO_EXTENSION = "no-ext"


def get_ignore_patterns(data_dir: str = DEFAULT_DATA_DIR) -> List[str]:
    """Patterns excluded from the coverage universe (gitignore is applied separately)."""
    return [f"{data_dir}/**", f"**/{data_dir}/**", *ALWAYS_IGNORED]


@dataclass
class CoverageOptions:
    include_extensions: Sequence[str] = DEFAULT_SOURCE_EXTENSIONS
    exclude_patterns: Optional[Sequence[str]] = None
    use_gitignore: bool = True


@dataclass
class ExtensionStats:
    total: int = 0
    covered: int = 0


@dataclass
class CoverageMetrics:
    total_files: int = 0
    covered_files: int = 0
    covered_files_list: List[str] = field(default_factory=list)
    uncovered_files: List[str] = field(default_factory=list)
    coverage_percentage: float = 100.0
    files_by_extension: Dict[str, ExtensionStats] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "coveredFiles": self.covered_files,
            "coveragePercentage": self.coverage_percentage,
            "coveredFilesList": self.covered_files_list,
            "uncoveredFiles": self.uncovered_files,
            "filesByExtension": {
                ext: {"total": s.total, "covered": s.covered}
                for ext, s in sorted(self.files_by_extension.items())
            },
        }


def get_all_source_files(
    fs: FileSystem,
    repository_root: str,
    options: Optional[CoverageOptions] = None,
    data_dir: str = DEFAULT_DATA_DIR,
) -> Set[str]:
    """
    Repository-relative paths of every source file in the coverage universe.

    Raises:
        RepositoryNotFoundError: the root does not exist.
    """
    options = options or CoverageOptions()
    patterns = [f"**/*{ext}" for ext in options.include_extensions]
    excludes = (
        list(options.exclude_patterns)
        if options.exclude_patterns is not None
        else get_ignore_patterns(data_dir)
    )
    return set(fs.list_files(
        repository_root,
        patterns,
        exclude_patterns=excludes,
        respect_gitignore=options.use_gitignore,
    ))


def get_referenced_files(views: Iterable[CodebaseView]) -> Set[str]:
    """Union of all group files; a single leading "/" is stripped, "./" is kept."""
    referenced: Set[str] = set()
    for view in views:
        for group in view.reference_groups.values():
            for path in group.files:
                referenced.add(strip_leading_slash(path))
    return referenced


def calculate_coverage_metrics(
    source_files: Iterable[str], referenced_files: Set[str]
) -> CoverageMetrics:
    """Exact-string coverage of ``source_files`` by ``referenced_files``."""
    metrics = CoverageMetrics()
    sources = set(source_files)

    for path in sources:
        ext = posixpath.splitext(path)[1].lower() or NO_EXTENSION
        stats = metrics.files_by_extension.setdefault(ext, ExtensionStats())
        stats.total += 1
        if path in referenced_files:
            stats.covered += 1
            metrics.covered_files_list.append(path)
        else:
            metrics.uncovered_files.append(path)

    metrics.covered_files_list.sort()
    metrics.uncovered_files.sort()
    metrics.total_files = len(sources)
    metrics.covered_files = len(metrics.covered_files_list)
    if metrics.total_files:
        metrics.coverage_percentage = metrics.covered_files / metrics.total_files * 100
    return metrics


def get_context_coverage(
    fs: FileSystem,
    repository_root: str,
    views: Iterable[CodebaseView],
    options: Optional[CoverageOptions] = None,
    data_dir: str = DEFAULT_DATA_DIR,
) -> CoverageMetrics:
    """Coverage of a repository's source files by the given views."""
    sources = get_all_source_files(fs, repository_root, options, data_dir)
    metrics = calculate_coverage_metrics(sources, get_referenced_files(views))
    logger.debug(
        f"Coverage {metrics.covered_files}/{metrics.total_files} "
        f"({metrics.coverage_percentage:.1f}%)"
    )
    return metrics
