"""
codeviews CLI - Build, validate and analyze codebase views.

Commands:
    codeviews add-doc              Create a view from a markdown document
    codeviews add-all-docs         Create views for all untracked documents
    codeviews save                 Validate and store a view JSON file
    codeviews validate             Validate one view
    codeviews validate-all         Validate every stored view
    codeviews list                 List stored views
    codeviews list-untracked-docs  List documents without a view
    codeviews coverage             Show context coverage
    codeviews lint                 Run context quality rules
    codeviews stamp                Mark a view as up to date
    codeviews status               Show repository status
"""

import click

from codeviews.cli.analyze import coverage, lint
from codeviews.cli.common import CliState
from codeviews.cli.status import status
from codeviews.cli.validate import validate, validate_all
from codeviews.cli.views import (
    add_all_docs,
    add_doc,
    list_untracked_docs,
    list_views,
    save,
    stamp,
)
from codeviews.config import get_settings
from codeviews.logger import configure_logging


@click.group()
@click.version_option(package_name="codeviews")
@click.option(
    "--path", "-p",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Path inside the repository to work on.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx, path, verbose):
    """codeviews - Map markdown documentation onto the code it describes."""
    settings = get_settings()
    configure_logging("debug" if verbose else settings.log_level, settings.log_format)
    ctx.obj = CliState(path=path, verbose=verbose)


# View management
main.add_command(add_doc)
main.add_command(add_all_docs)
main.add_command(save)
main.add_command(list_views)
main.add_command(list_untracked_docs)
main.add_command(stamp)

# Validation
main.add_command(validate)
main.add_command(validate_all)

# Analysis
main.add_command(coverage)
main.add_command(lint)
main.add_command(status)


if __name__ == "__main__":
    main()
