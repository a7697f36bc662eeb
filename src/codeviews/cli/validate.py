"""
Validation commands: validate, validate-all.
"""

import json as _json
import sys
from pathlib import Path

import click

from codeviews.cli.common import CliState, echo_json, handle_errors, pass_state
from codeviews.formatting import format_validation_result, format_validation_summary
from codeviews.repository import RepositoryContext, find_record, validate_all_views, validate_record
from codeviews.validation import (
    ValidationResult,
    ViewValidated,
    ViewValidationFailed,
)


def _validate_target(repo: RepositoryContext, target: str) -> tuple:
    """Validate a stored view (by id or name) or a view JSON file. Returns (label, result)."""
    record = find_record(repo.store.records(repo.root), target)
    if record is not None:
        outcome = validate_record(repo, record)
        label = f"{outcome.view_name} ({outcome.view_id})"
        if isinstance(outcome, ViewValidationFailed):
            raise click.ClickException(f"{label}: {outcome.error}")
        return label, outcome.result

    path = Path(target)
    if path.is_file():
        try:
            data = _json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise click.ClickException(f"Cannot read {target}: {e}")
        except _json.JSONDecodeError as e:
            raise click.ClickException(f"Invalid JSON in {target}: {e}")
        return target, repo.validator.validate(data, repo.root)

    raise click.ClickException(f"View not found: {target}")


@click.command()
@click.argument("target")
@click.option("--summary", is_flag=True, help="Print only the issue counts.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@pass_state
@handle_errors
def validate(state: CliState, target, summary, as_json):
    """Validate a view given by id, name or JSON file path."""
    label, result = _validate_target(state.repo, target)

    if as_json:
        echo_json(result.to_dict())
    elif summary:
        click.echo(f"{label}: {format_validation_summary(result)}")
    else:
        status = (
            click.style("valid", fg="green") if result.is_valid
            else click.style("invalid", fg="red")
        )
        click.echo(click.style(label, bold=True) + f": {status}")
        click.echo()
        click.echo(format_validation_result(result))

    if not result.is_valid:
        sys.exit(1)


def _summary_line(result: ValidationResult) -> str:
    color = "red" if not result.is_valid else "yellow"
    return click.style(format_validation_summary(result), fg=color)


@click.command("validate-all")
@click.option("--errors-only", is_flag=True, help="Only show views with errors.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@pass_state
@handle_errors
def validate_all(state: CliState, errors_only, as_json):
    """Validate every stored view."""
    summary = validate_all_views(state.repo)

    if as_json:
        payload = summary.to_dict()
        payload["results"] = []
        for outcome in summary.results:
            entry = {"viewId": outcome.view_id, "viewName": outcome.view_name, "success": outcome.success}
            if isinstance(outcome, ViewValidated):
                entry["validation"] = outcome.result.to_dict()
            else:
                entry["error"] = outcome.error
            payload["results"].append(entry)
        echo_json(payload)
    elif summary.total_views == 0:
        click.echo("No views found.")
    else:
        for outcome in summary.with_issues():
            if errors_only and outcome.success:
                continue
            name = f"{outcome.view_name} ({outcome.view_id})"
            if isinstance(outcome, ViewValidationFailed):
                click.echo(f"{click.style('  FAIL', fg='red')} {name}: {outcome.error}")
            else:
                icon = click.style("  WARN", fg="yellow") if outcome.success else click.style("  FAIL", fg="red")
                click.echo(f"{icon} {name}: {_summary_line(outcome.result)}")
        click.echo()
        click.echo(
            f"{summary.valid_views}/{summary.total_views} view(s) valid, "
            f"{summary.error_count} error(s), {summary.warning_count} warning(s), "
            f"{summary.info_count} info"
        )

    if summary.invalid_views:
        sys.exit(1)
