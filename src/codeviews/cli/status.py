"""
CLI command for ``codeviews status``: repository, config and view overview.
"""

import click

from codeviews.builder import find_untracked_documents
from codeviews.cli.common import CliState, echo_json, handle_errors, pass_state
from codeviews.config import validate_project_config
from codeviews.git import get_git_remote_url
from codeviews.lint import available_rules


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@pass_state
@handle_errors
def status(state: CliState, as_json):
    """Show repository, configuration and view status."""
    repo = state.repo
    views = repo.store.list(repo.root)
    untracked = find_untracked_documents(repo)
    config = repo.project_config
    warnings = validate_project_config(config, available_rules())
    remote = get_git_remote_url(repo.root)

    info = {
        "repositoryRoot": str(repo.root),
        "remoteUrl": remote,
        "hasConfig": config.source_path is not None,
        "configPath": config.source_path,
        "configWarnings": warnings,
        "viewsCount": len(views),
        "untrackedDocsCount": len(untracked),
        "untrackedDocs": untracked,
    }
    if as_json:
        echo_json(info)
        return

    ok = click.style("yes", fg="green")
    no = click.style("no", fg="yellow")
    click.echo(click.style("codeviews status", bold=True))
    click.echo(f"  Repository: {repo.root}")
    click.echo(f"  Remote:     {remote or click.style('none', dim=True)}")
    click.echo(f"  Config:     {config.source_path or no}")
    for warning in warnings:
        click.echo(click.style(f"    ! {warning}", fg="yellow"))
    click.echo(f"  Views:      {len(views)}")
    click.echo(f"  Untracked:  {len(untracked)} document(s)")
    if untracked:
        for doc in untracked[:10]:
            click.echo(f"    {doc}")
        if len(untracked) > 10:
            click.echo(click.style(f"    ... and {len(untracked) - 10} more", dim=True))
    elif views:
        click.echo(f"  All documents tracked: {ok}")
