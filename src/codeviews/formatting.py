"""
Terminal rendering of validation results and coverage reports.

Functions return strings (styled with click.style) so commands decide
where they go; click strips the styling when output is not a terminal.
"""

from __future__ import annotations

from typing import Dict, List

import click

from codeviews.coverage import CoverageMetrics
from codeviews.models import IssueSeverity
from codeviews.validation import ValidationIssue, ValidationResult

_HINTS: Dict[str, str] = {
    "missing_file": (
        'Paths are relative to the repository root, e.g. "src/index.ts" not "/src/index.ts"'
    ),
    "duplicate_coordinates": "Each reference group needs its own cell, e.g. [0, 1] or [1, 0]",
    "coordinate_bounds": "Coordinates are [row, col], zero-indexed, within rows x cols",
}

_SECTIONS = (
    (IssueSeverity.ERROR, "Errors:", "red"),
    (IssueSeverity.WARNING, "Warnings:", "yellow"),
    (IssueSeverity.INFO, "Info:", "blue"),
)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def format_issue(issue: ValidationIssue, indent: str = "  ") -> str:
    lines = []
    if issue.location:
        lines.append(f"{indent}- {issue.message} ({issue.location})")
    else:
        lines.append(f"{indent}- {issue.message}")
    if issue.context and issue.context != issue.message:
        lines.append(f"{indent}  {issue.context}")
    hint = _HINTS.get(issue.type)
    if hint:
        lines.append(click.style(f"{indent}  Hint: {hint}", dim=True))
    return "\n".join(lines)


def format_validation_result(result: ValidationResult) -> str:
    """Issues grouped by severity, errors first."""
    if not result.issues:
        return click.style("No validation issues found", fg="green")

    blocks: List[str] = []
    for severity, title, color in _SECTIONS:
        issues = [i for i in result.issues if i.severity is severity]
        if not issues:
            continue
        lines = [click.style(title, fg=color, bold=True)]
        lines.extend(format_issue(i) for i in issues)
        if severity is IssueSeverity.ERROR:
            lines.append("")
            lines.append("This view may not render properly until these errors are fixed.")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_validation_summary(result: ValidationResult) -> str:
    """One-line count of issues, e.g. "2 errors, 1 warning"."""
    parts = []
    if result.error_count:
        parts.append(_plural(result.error_count, "error"))
    if result.warning_count:
        parts.append(_plural(result.warning_count, "warning"))
    if result.info_count:
        parts.append(f"{result.info_count} info")
    return ", ".join(parts) if parts else "No issues"


def _percentage_color(percentage: float) -> str:
    if percentage >= 80:
        return "green"
    if percentage >= 50:
        return "yellow"
    return "red"


def format_coverage_report(
    metrics: CoverageMetrics,
    show_uncovered: bool = False,
    limit: int = 50,
) -> str:
    """Overall coverage, a per-extension table and optionally the uncovered files."""
    pct = metrics.coverage_percentage
    lines = [
        click.style("Context Coverage", bold=True),
        "",
        f"  Files covered: {metrics.covered_files}/{metrics.total_files} "
        + click.style(f"({pct:.1f}%)", fg=_percentage_color(pct), bold=True),
    ]

    if metrics.files_by_extension:
        lines.append("")
        lines.append(click.style("  By extension:", bold=True))
        ranked = sorted(
            metrics.files_by_extension.items(), key=lambda kv: (-kv[1].total, kv[0])
        )
        for ext, stats in ranked:
            ext_pct = stats.covered / stats.total * 100 if stats.total else 100.0
            lines.append(
                f"    {ext:<10} {stats.covered:>5}/{stats.total:<5} "
                + click.style(f"{ext_pct:5.1f}%", fg=_percentage_color(ext_pct))
            )

    if show_uncovered and metrics.uncovered_files:
        lines.append("")
        lines.append(click.style(f"  Uncovered files ({len(metrics.uncovered_files)}):", bold=True))
        for path in metrics.uncovered_files[:limit]:
            lines.append(f"    {path}")
        remaining = len(metrics.uncovered_files) - limit
        if remaining > 0:
            lines.append(click.style(f"    ... and {remaining} more", dim=True))

    return "\n".join(lines)
