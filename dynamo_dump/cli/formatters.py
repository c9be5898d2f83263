"""CLI output formatting functions.

This module contains functions for displaying the result of a backup or
restore run on the command line.
"""

import click

from dynamo_dump.config.run_config import Mode, RunConfig
from dynamo_dump.migration.errors import ErrorKind, RunOutcome


def show_outcome(config: RunConfig, outcome: RunOutcome) -> None:
    """
    Display the result of a run.

    Success goes to stdout in green; failures go to stderr in red together
    with how far the run got.

    Args:
        config: Configuration of the finished run
        outcome: Result returned by the engine
    """
    if outcome.succeeded:
        if config.mode is Mode.BACKUP:
            message = (
                f"Backup complete: {outcome.records_transferred} records "
                f"written to {config.file_path}"
            )
        elif config.dry_run:
            message = (
                f"Dry run complete: {config.file_path} is valid. "
                f"Use without --dry-run to restore into {config.table_name}."
            )
        else:
            message = (
                f"Restore complete: {outcome.records_transferred} records "
                f"written to {config.table_name}"
            )
        click.echo(click.style(message, fg="green"))
        return

    kind = outcome.error_kind.value if outcome.error_kind else "Error"
    click.echo(
        click.style(f"Error ({kind}): {outcome.failure_reason}", fg="red"), err=True
    )

    if outcome.records_transferred:
        if config.mode is Mode.RESTORE:
            click.echo(
                click.style(
                    f"{outcome.records_transferred} records were written before "
                    f"the failure; table {config.table_name} is partially restored.",
                    fg="yellow",
                ),
                err=True,
            )
        else:
            click.echo(
                click.style(
                    f"{outcome.records_transferred} records were written before "
                    f"the failure; {config.file_path} is incomplete.",
                    fg="yellow",
                ),
                err=True,
            )

    if outcome.error_kind is ErrorKind.DESTINATION_EXISTS:
        click.echo("Use --overwrite to replace the existing file.", err=True)
