"""
Repository analysis commands: coverage, lint.
"""

import sys
from collections import OrderedDict

import click

from codeviews.analyzer import RepositoryAnalyzer
from codeviews.cli.common import CliState, echo_json, handle_errors, pass_state
from codeviews.formatting import format_coverage_report, format_validation_summary
from codeviews.models import IssueSeverity
from codeviews.repository import validate_all_views
from codeviews.validation import ViewValidationFailed

_SEVERITY_STYLE = {
    IssueSeverity.ERROR: ("x", "red"),
    IssueSeverity.WARNING: ("!", "yellow"),
    IssueSeverity.INFO: ("i", "blue"),
}


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--show-uncovered", is_flag=True, help="List files no view references.")
@click.option("--ext", "extensions", multiple=True, help="Only count these extensions (repeatable).")
@pass_state
@handle_errors
def coverage(state: CliState, as_json, show_uncovered, extensions):
    """Show how much of the repository the stored views reference."""
    analyzer = RepositoryAnalyzer(state.repo)
    metrics = analyzer.coverage(analyzer.coverage_options(extensions or None))
    if as_json:
        echo_json(metrics.to_dict())
        return
    click.echo(format_coverage_report(metrics, show_uncovered=show_uncovered))


def _list_rules(analyzer: RepositoryAnalyzer) -> None:
    click.echo(click.style("Available lint rules:", bold=True))
    for rule_id, rule in analyzer.engine.get_all_rules().items():
        click.echo()
        click.echo(click.style(rule_id, bold=True))
        click.echo(f"  Description: {rule.description}")
        click.echo(f"  Default severity: {rule.severity.value}")
        click.echo(f"  Impact: {rule.impact}")
        if rule.fixable:
            click.echo(f"  Fixable: {click.style('yes', fg='green')}")
        if rule.default_options:
            options = ", ".join(f"{k}={v!r}" for k, v in rule.default_options.items())
            click.echo(f"  Options: {options}")
    click.echo()
    click.echo(click.style(
        "Configure rules under context.rules in .codeviewsrc.json or .codeviewsrc.yaml.",
        dim=True,
    ))


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--quiet", is_flag=True, help="Hide rule details and info counts.")
@click.option("--errors-only", is_flag=True, help="Only report (and fail on) errors.")
@click.option("--enable", "enabled", multiple=True, help="Enable a rule for this run (repeatable).")
@click.option("--disable", "disabled", multiple=True, help="Disable a rule for this run (repeatable).")
@click.option("--fix", is_flag=True, help="Apply automatic fixes where available.")
@click.option("--list-rules", is_flag=True, help="List the available rules and exit.")
@pass_state
@handle_errors
def lint(state: CliState, as_json, quiet, errors_only, enabled, disabled, fix, list_rules):
    """Check stored views for context quality problems."""
    analyzer = RepositoryAnalyzer(state.repo)
    if list_rules:
        _list_rules(analyzer)
        return

    config_warnings = analyzer.engine.config_warnings()
    views_summary = validate_all_views(state.repo)
    result = analyzer.lint(enabled_rules=enabled, disabled_rules=disabled, fix=fix)

    has_view_errors = views_summary.invalid_views > 0
    failing = result.error_count if errors_only else len(result.violations)
    exit_code = 1 if failing or has_view_errors else 0

    if as_json:
        echo_json({
            "lintResults": result.to_dict(),
            "viewValidation": views_summary.to_dict(),
            "configWarnings": config_warnings,
        })
        sys.exit(exit_code)

    for warning in config_warnings:
        click.echo(click.style(f"Config warning: {warning}", fg="yellow"), err=True)

    if views_summary.invalid_views:
        click.echo(click.style(f"{views_summary.invalid_views} invalid view(s):", fg="red"))
        for outcome in views_summary.results:
            if outcome.success:
                continue
            if isinstance(outcome, ViewValidationFailed):
                detail = outcome.error
            else:
                detail = format_validation_summary(outcome.result)
            click.echo(f"  {outcome.view_name} ({outcome.view_id}): {detail}")
        click.echo()

    if result.fixes_applied:
        click.echo(click.style(f"Applied {result.fixes_applied} fix(es).", fg="green"))

    shown = [
        v for v in result.violations
        if not errors_only or v.severity is IssueSeverity.ERROR
    ]
    if not shown:
        if errors_only and result.violations:
            click.echo(click.style("No errors found (warnings and info suppressed).", fg="green"))
        else:
            click.echo(click.style("No issues found.", fg="green"))
        sys.exit(exit_code)

    by_file = OrderedDict()
    for violation in shown:
        by_file.setdefault(violation.file or "General", []).append(violation)

    for file, violations in by_file.items():
        click.echo(click.style(file, underline=True))
        for violation in violations:
            icon, color = _SEVERITY_STYLE[violation.severity]
            location = f"{violation.line}:1" if violation.line else ""
            click.echo(f"  {location:>5} {click.style(icon, fg=color)} {violation.message}")
            if not quiet:
                click.echo(click.style(f"        rule: {violation.rule_id}", dim=True))
        click.echo()

    parts = []
    if result.error_count:
        parts.append(click.style(f"{result.error_count} error(s)", fg="red"))
    if result.warning_count and not errors_only:
        parts.append(click.style(f"{result.warning_count} warning(s)", fg="yellow"))
    if result.info_count and not errors_only and not quiet:
        parts.append(click.style(f"{result.info_count} info", fg="blue"))
    click.echo(click.style(f"{len(shown)} problem(s)", bold=True) + f" ({', '.join(parts)})")

    if result.fixable_count and not fix:
        click.echo(click.style(
            f"{result.fixable_count} problem(s) can be fixed with --fix", dim=True
        ))
    sys.exit(exit_code)
