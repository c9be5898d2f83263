"""
Run surface of the migration engine: RunConfig -> RunOutcome.

Checks that need no store access run first: a backup refuses an existing
file before the table is described, and a restore parses its whole source
file before the table is described.
"""

from __future__ import annotations

from typing import Any

from dynamo_dump.config.run_config import Mode, RunConfig
from dynamo_dump.migration.codec import RecordCodec
from dynamo_dump.migration.errors import MigrationError, RunOutcome
from dynamo_dump.migration.exporter import check_destination, export_table
from dynamo_dump.migration.guard import check_table
from dynamo_dump.migration.importer import load_source, write_records
from dynamo_dump.utils.logging import get_logger

logger = get_logger(__name__)


def _failed(config: RunConfig, error: MigrationError) -> RunOutcome:
    logger.error(error.message)
    return RunOutcome.failure(
        error, table_name=config.table_name, file_path=config.file_path
    )


def run(config: RunConfig, store: Any) -> RunOutcome:
    """
    Execute one backup or restore run.

    Args:
        config: Immutable run configuration
        store: Store exposing describe_table, scan_page and put_item

    Returns:
        RunOutcome; a failed outcome always carries a failure_reason and an
        error_kind
    """
    codec = RecordCodec(config.record_format)

    if config.mode is Mode.BACKUP:
        return _backup(config, store, codec)
    return _restore(config, store, codec)


def _backup(config: RunConfig, store: Any, codec: RecordCodec) -> RunOutcome:
    try:
        check_destination(config.file_path, config.overwrite_existing)
        handle = check_table(store, config.table_name, for_restore=False)
    except MigrationError as e:
        return _failed(config, e)

    return export_table(
        handle,
        config.file_path,
        overwrite=config.overwrite_existing,
        codec=codec,
        page_size=config.page_size,
        progress_every=config.progress_every,
    )


def _restore(config: RunConfig, store: Any, codec: RecordCodec) -> RunOutcome:
    try:
        elements = load_source(config.file_path)
        handle = check_table(store, config.table_name, for_restore=True)
    except MigrationError as e:
        return _failed(config, e)

    return write_records(
        handle,
        elements,
        codec=codec,
        progress_every=config.progress_every,
        dry_run=config.dry_run,
        file_path=config.file_path,
    )
