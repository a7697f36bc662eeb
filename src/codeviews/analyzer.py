"""
Repository-wide analysis over all stored views: coverage and lint.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from codeviews.coverage import CoverageMetrics, CoverageOptions, get_context_coverage, get_ignore_patterns
from codeviews.lint import LintEngine, LintResult
from codeviews.repository import RepositoryContext


class RepositoryAnalyzer:
    """
    Usage:
        analyzer = RepositoryAnalyzer(RepositoryContext.open("."))
        print(analyzer.coverage().coverage_percentage)
        print(analyzer.lint().error_count)
    """

    def __init__(self, ctx: RepositoryContext):
        self.ctx = ctx
        self.engine = LintEngine(ctx)

    def coverage_options(self, extensions: Optional[Sequence[str]] = None) -> CoverageOptions:
        """Coverage options from the project config, optionally narrowed to some extensions."""
        config = self.ctx.project_config
        options = CoverageOptions(
            exclude_patterns=get_ignore_patterns(self.ctx.data_dir) + config.exclude_patterns,
            use_gitignore=config.use_gitignore,
        )
        if extensions:
            options.include_extensions = [
                e if e.startswith(".") else f".{e}" for e in extensions
            ]
        return options

    def coverage(self, options: Optional[CoverageOptions] = None) -> CoverageMetrics:
        """
        Raises:
            RepositoryNotFoundError: the repository root has gone away.
        """
        return get_context_coverage(
            self.ctx.fs,
            str(self.ctx.root),
            self.ctx.store.list(self.ctx.root),
            options or self.coverage_options(),
            data_dir=self.ctx.data_dir,
        )

    def lint(
        self,
        enabled_rules: Optional[Sequence[str]] = None,
        disabled_rules: Optional[Sequence[str]] = None,
        fix: bool = False,
        now: Optional[datetime] = None,
    ) -> LintResult:
        return self.engine.lint(enabled_rules, disabled_rules, fix=fix, now=now)
