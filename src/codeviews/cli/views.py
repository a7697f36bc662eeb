"""
View management commands: add-doc, add-all-docs, save, list,
list-untracked-docs, stamp.
"""

import json as _json
import sys
from pathlib import Path

import click

from codeviews.builder import (
    ViewBuilder,
    ViewCreationFailure,
    ViewCreationOptions,
    ViewCreationSuccess,
    creation_stats,
    find_untracked_documents,
)
from codeviews.cli.common import CliState, echo_json, handle_errors, pass_state, resolve_document
from codeviews.formatting import format_validation_result
from codeviews.models import parse_timestamp, utc_timestamp
from codeviews.repository import stamp_view
from codeviews.validation import ValidationResult, parse_view


def _render_created(result: ViewCreationSuccess) -> None:
    view = result.view
    verb = "Would create" if not result.saved else "Created"
    click.echo(click.style(f"{verb} view '{view.name}' ({view.id})", fg="green"))
    click.echo(f"  Overview: {view.overview_path}")
    click.echo(
        f"  Grid: {view.rows}x{view.cols}, "
        f"{len(view.reference_groups)} section(s), {view.file_count} file(s)"
    )
    if result.validation is not None and result.validation.issues:
        click.echo()
        click.echo(format_validation_result(result.validation))


@click.command("add-doc")
@click.argument("document")
@click.option("--name", default=None, help="View name (defaults to the document title).")
@click.option("--description", default=None, help="View description.")
@click.option("--category", default="docs", show_default=True, help="View category.")
@click.option("--skip-validation", is_flag=True, help="Save without validating.")
@click.option("--dry-run", is_flag=True, help="Print the view instead of saving it.")
@pass_state
@handle_errors
def add_doc(state: CliState, document, name, description, category, skip_validation, dry_run):
    """Create a view from a markdown DOCUMENT."""
    repo = state.repo
    options = ViewCreationOptions(
        category=category,
        name=name,
        description=description,
        skip_validation=skip_validation,
        dry_run=dry_run,
    )
    result = ViewBuilder(repo).build_view(resolve_document(document), options)

    if isinstance(result, ViewCreationFailure):
        raise click.ClickException(result.error)
    if dry_run:
        echo_json(result.view.to_dict())
        return
    _render_created(result)


@click.command("add-all-docs")
@click.option("--category", default="docs", show_default=True, help="Category for the new views.")
@click.option("--dry-run", is_flag=True, help="Report what would be created without saving.")
@click.option("--skip-validation", is_flag=True, help="Save without validating.")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Process at most N documents.")
@pass_state
@handle_errors
def add_all_docs(state: CliState, category, dry_run, skip_validation, limit):
    """Create views for every untracked markdown document."""
    repo = state.repo
    documents = find_untracked_documents(repo)
    if limit:
        documents = documents[:limit]
    if not documents:
        click.echo("No untracked documents found.")
        return

    options = ViewCreationOptions(
        category=category, skip_validation=skip_validation, dry_run=dry_run
    )
    results = ViewBuilder(repo).build_views(documents, options)

    for result in results:
        if isinstance(result, ViewCreationSuccess):
            icon = click.style("  OK  ", fg="green")
            suffix = f" ({result.issues} issue(s))" if result.issues else ""
            click.echo(f"{icon} {result.file} -> {result.view_id}{suffix}")
        else:
            icon = click.style("  FAIL", fg="red")
            click.echo(f"{icon} {result.file}: {result.error}")

    stats = creation_stats(results)
    click.echo()
    verb = "would be created" if dry_run else "created"
    click.echo(
        f"{stats.successful} of {stats.total} view(s) {verb}: "
        f"{stats.total_cells} section(s), {stats.total_files} file(s), "
        f"{stats.total_issues} issue(s)"
    )
    if stats.failed:
        click.echo(click.style(f"{stats.failed} document(s) failed", fg="red"), err=True)
        sys.exit(1)


@click.command()
@click.argument("view_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--keep-source", is_flag=True, help="Do not delete VIEW_FILE after saving.")
@pass_state
@handle_errors
def save(state: CliState, view_file, keep_source):
    """Validate and store a hand-written view JSON file."""
    repo = state.repo
    source = Path(view_file)
    try:
        data = _json.loads(source.read_text(encoding="utf-8"))
    except OSError as e:
        raise click.ClickException(f"Cannot read view file: {e}")
    except _json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in view file: {e}")

    parsed = parse_view(data)
    if parsed.view is None:
        click.echo(format_validation_result(ValidationResult(issues=parsed.issues)))
        raise click.ClickException(f"{view_file} is not a usable view")

    saved = repo.store.save_with_validation(repo.root, parsed.view)
    result = ValidationResult(
        issues=parsed.issues + saved.issues,
        validated_view=saved.validated_view,
    )
    view = result.validated_view or parsed.view
    click.echo(click.style(f"Saved view '{view.name}' ({view.id})", fg="green"))

    if not keep_source:
        try:
            source.unlink()
            click.echo(f"Removed {view_file}; the view now lives in the view store")
        except OSError as e:
            click.echo(f"Could not remove {view_file}: {e}", err=True)

    if result.issues:
        click.echo()
        click.echo(format_validation_result(result))
        click.echo(f"\nRun 'codeviews validate {view.id}' after fixing these issues.")
    if not result.is_valid:
        sys.exit(1)


@click.command("list")
@click.option("--category", default=None, help="Only show views in this category.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@pass_state
@handle_errors
def list_views(state: CliState, category, as_json):
    """List stored views."""
    repo = state.repo
    views = repo.store.list(repo.root)
    if category:
        views = [v for v in views if v.category == category]

    if as_json:
        echo_json([v.to_dict() for v in views])
        return
    if not views:
        click.echo("No views found.")
        return

    click.echo(click.style(f"{len(views)} view(s) in {repo.root}", bold=True))
    for view in views:
        click.echo(
            f"  {click.style(view.id, fg='cyan')}  {view.name}  "
            f"[{view.category}] {len(view.reference_groups)} section(s), "
            f"{view.file_count} file(s)"
        )
        if view.overview_path:
            click.echo(click.style(f"      {view.overview_path}", dim=True))


@click.command("list-untracked-docs")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@pass_state
@handle_errors
def list_untracked_docs(state: CliState, as_json):
    """List markdown documents that no view uses as its overview."""
    documents = find_untracked_documents(state.repo)
    if as_json:
        echo_json({"untrackedDocuments": documents, "count": len(documents)})
        return
    if not documents:
        click.echo("All markdown documents are tracked by a view.")
        return
    click.echo(click.style(f"{len(documents)} untracked document(s):", bold=True))
    for doc in documents:
        click.echo(f"  {doc}")
    click.echo(click.style("\nRun 'codeviews add-doc <file>' to create a view.", dim=True))


@click.command()
@click.argument("view_id")
@click.option("--timestamp", default=None, help="ISO-8601 timestamp (defaults to now).")
@pass_state
@handle_errors
def stamp(state: CliState, view_id, timestamp):
    """Mark VIEW_ID as up to date by refreshing its timestamp."""
    if timestamp is not None:
        parsed = parse_timestamp(timestamp)
        if parsed is None:
            raise click.BadParameter(f"not an ISO-8601 timestamp: {timestamp}", param_hint="--timestamp")
        timestamp = utc_timestamp(parsed)
    repo = state.repo
    if not stamp_view(repo.store, repo.root, view_id, timestamp):
        raise click.ClickException(f"View not found: {view_id}")
    click.echo(click.style(f"Stamped view {view_id}", fg="green"))
