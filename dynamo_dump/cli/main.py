"""
Command-line interface for dynamo_dump.

Provides CLI commands to back up a DynamoDB table to a JSON file and to
restore such a file into an empty table.

Usage:
    # Show help
    dynamo-dump --help

    # Back up a table
    dynamo-dump backup --table Orders --file orders.json
    dynamo-dump backup --table Orders --file orders.json --overwrite

    # Restore into an empty table
    dynamo-dump restore --table Orders --file orders.json
    dynamo-dump restore --table Orders --file orders.json --dry-run
"""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from dynamo_dump import __version__
from dynamo_dump.cli.formatters import show_outcome
from dynamo_dump.config.loader import DEFAULT_CONFIG_FILE, ConfigError, ConfigLoader
from dynamo_dump.config.run_config import (
    DEFAULT_FILE_NAME,
    DEFAULT_PROGRESS_EVERY,
    Mode,
    RecordFormat,
    RunConfig,
)
from dynamo_dump.migration import run
from dynamo_dump.store import DynamoStore, StoreError, create_session
from dynamo_dump.store.dynamodb import DEFAULT_MAX_ATTEMPTS
from dynamo_dump.utils import resolve_config_dir
from dynamo_dump.utils.logging import cleanup_old_logs, get_logger, setup_logging

# Region used when neither the CLI nor the config file names one
DEFAULT_REGION = "eu-west-2"

RECORD_FORMATS = tuple(fmt.value for fmt in RecordFormat)


def prompt_mfa_code(prompt: str) -> str:
    """Ask for an MFA token code on the terminal."""
    text = prompt.strip().rstrip(":") or "Enter MFA code"
    return click.prompt(text, err=True)


def connection_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by commands that talk to DynamoDB."""
    options = [
        click.option(
            "--table", "-t", required=True, help="DynamoDB table to back up or restore."
        ),
        click.option(
            "--file",
            "-f",
            "file_path",
            type=click.Path(dir_okay=False),
            help=f"JSON file used for the data (default: {DEFAULT_FILE_NAME}).",
        ),
        click.option(
            "--format",
            "record_format",
            type=click.Choice(RECORD_FORMATS, case_sensitive=False),
            help="Record representation in the file (default: typed).",
        ),
        click.option(
            "--progress-every",
            type=click.IntRange(min=1),
            help=f"Records between progress messages (default: {DEFAULT_PROGRESS_EVERY}).",
        ),
        click.option(
            "--profile",
            "-p",
            help="AWS profile from the credentials file. Defaults to the default profile.",
        ),
        click.option(
            "--region",
            "-r",
            help=f"AWS region to connect to (default: {DEFAULT_REGION}).",
        ),
        click.option(
            "--endpoint-url",
            "-l",
            help="DynamoDB endpoint URL, e.g. http://localhost:8000 for DynamoDB Local.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="dynamo-dump")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="DYNAMO_DUMP_CONFIG_DIR",
    help="Configuration directory path (default: ~/.dynamo-dump).",
)
@click.option(
    "--config-file",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="DYNAMO_DUMP_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    config_file: str | None,
) -> None:
    """
    Back up and restore DynamoDB tables to and from JSON files.

    Restores are only performed into empty tables.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = resolve_config_dir(config_dir)
    resolved_config_file = (
        Path(config_file) if config_file else resolved_config_dir / DEFAULT_CONFIG_FILE
    )

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(config_dir=resolved_config_dir)
        config = loader.load_from_file(resolved_config_file)
        if config:
            loader.validate(config)
    except ConfigError as e:
        # The CLI still works without a config file
        click.echo(
            click.style(f"Warning: Configuration error: {e}", fg="yellow"), err=True
        )
        config = {}

    ctx.obj["config"] = config

    effective_verbose = verbose or config.get("verbose", False)

    log_dir = (
        Path(config["log_dir"]).expanduser()
        if config.get("log_dir")
        else resolved_config_dir / "logs"
    )
    setup_logging(verbose=effective_verbose, log_dir=log_dir)

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


def _build_store(
    config: dict[str, Any],
    profile: str | None,
    region: str | None,
    endpoint_url: str | None,
    page_size: int | None = None,
) -> DynamoStore:
    """Create the DynamoDB store from CLI flags, falling back to the config file."""
    logger = get_logger(__name__)

    profile = profile or config.get("profile")
    if not profile:
        logger.warning("Profile option not supplied. Using the default profile")

    region = region or config.get("region")
    if not region:
        logger.warning(f"Region option not supplied. Using region {DEFAULT_REGION}")
        region = DEFAULT_REGION

    endpoint_url = endpoint_url or config.get("endpoint_url")
    if endpoint_url:
        logger.warning(f"Using DynamoDB endpoint {endpoint_url}")

    session = create_session(
        profile=profile, region=region, credential_challenge=prompt_mfa_code
    )
    logger.info(
        f"Connecting to DynamoDB with profile {profile or 'default'} "
        f"in region {region}"
    )
    return DynamoStore.from_session(
        session,
        endpoint_url=endpoint_url,
        max_attempts=config.get("max_attempts", DEFAULT_MAX_ATTEMPTS),
        page_size=page_size,
    )


def _execute(
    ctx: click.Context,
    options: dict[str, Any],
    profile: str | None,
    region: str | None,
    endpoint_url: str | None,
) -> None:
    """Build the run configuration and store, run, and report the outcome."""
    logger = get_logger(__name__)
    config = ctx.obj.get("config", {})

    if not options.get("file_path"):
        logger.warning(
            f"File option not supplied. Using {DEFAULT_FILE_NAME} for the file name"
        )

    # CLI flags take precedence over the config file
    for key, default in (
        ("record_format", RecordFormat.TYPED),
        ("progress_every", DEFAULT_PROGRESS_EVERY),
        ("page_size", None),
    ):
        if options.get(key) is None:
            options[key] = config.get(key, default)

    try:
        run_config = RunConfig.from_options(**options)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    try:
        store = _build_store(
            config, profile, region, endpoint_url, page_size=run_config.page_size
        )
    except StoreError as e:
        logger.error(str(e))
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    outcome = run(run_config, store)
    show_outcome(run_config, outcome)

    if not outcome.succeeded:
        sys.exit(1)


# =============================================================================
# Backup Command
# =============================================================================


@cli.command("backup")
@connection_options
@click.option(
    "--overwrite",
    "-o",
    is_flag=True,
    help="Overwrite the destination file if it already exists.",
)
@click.option(
    "--page-size",
    type=click.IntRange(min=1),
    help="Items requested per scan page (default: service maximum).",
)
@click.pass_context
def backup_command(
    ctx: click.Context,
    table: str,
    file_path: str | None,
    record_format: str | None,
    progress_every: int | None,
    profile: str | None,
    region: str | None,
    endpoint_url: str | None,
    overwrite: bool,
    page_size: int | None,
) -> None:
    """
    Back up every item of a table to a JSON file.

    The table is scanned page by page and streamed into the file as a
    JSON array, one pretty-printed item per element.

    Examples:

        # Back up a table
        dynamo-dump backup --table Orders --file orders.json

        # Replace an existing backup file
        dynamo-dump backup --table Orders --file orders.json --overwrite

        # Back up from DynamoDB Local
        dynamo-dump backup -t Orders -l http://localhost:8000
    """
    _execute(
        ctx,
        {
            "mode": Mode.BACKUP,
            "table_name": table,
            "file_path": file_path,
            "overwrite_existing": overwrite,
            "record_format": record_format,
            "progress_every": progress_every,
            "page_size": page_size,
        },
        profile,
        region,
        endpoint_url,
    )


# =============================================================================
# Restore Command
# =============================================================================


@cli.command("restore")
@connection_options
@click.option(
    "--dry-run",
    "-n",
    is_flag=True,
    help="Check the file and the table without writing any item.",
)
@click.pass_context
def restore_command(
    ctx: click.Context,
    table: str,
    file_path: str | None,
    record_format: str | None,
    progress_every: int | None,
    profile: str | None,
    region: str | None,
    endpoint_url: str | None,
    dry_run: bool,
) -> None:
    """
    Restore the items of a JSON file into an empty table.

    The table must exist and contain no items. Items are written one at a
    time in file order; the restore stops at the first item that fails and
    items already written are kept.

    Examples:

        # Restore a backup
        dynamo-dump restore --table Orders --file orders.json

        # Validate a backup file without writing
        dynamo-dump restore --table Orders --file orders.json --dry-run
    """
    _execute(
        ctx,
        {
            "mode": Mode.RESTORE,
            "table_name": table,
            "file_path": file_path,
            "record_format": record_format,
            "progress_every": progress_every,
            "dry_run": dry_run,
        },
        profile,
        region,
        endpoint_url,
    )


@cli.command("health")
def health_command() -> None:
    """
    Check application health status.

    Example:

        dynamo-dump health
    """
    click.echo("healthy")
