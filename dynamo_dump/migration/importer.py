"""
Restore pipeline: JSON array file -> one put per record.

The whole file is parsed before the first write so that an unreadable file
never leaves a half-restored table. Records are then written one at a time
in file order and the run stops at the first record that cannot be decoded
or written. Nothing already written is rolled back; the outcome reports how
many records made it into the table.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

from dynamo_dump.config.run_config import DEFAULT_PROGRESS_EVERY
from dynamo_dump.migration.codec import RecordCodec
from dynamo_dump.migration.errors import (
    MigrationError,
    RecordWriteError,
    RunOutcome,
    SourceFileError,
)
from dynamo_dump.migration.guard import TableHandle
from dynamo_dump.migration.progress import ProgressReporter
from dynamo_dump.store import StoreError
from dynamo_dump.utils.logging import get_logger

logger = get_logger(__name__)


def load_source(file_path: Path | str) -> list[Any]:
    """
    Read and parse a backup file.

    Numbers are parsed as Decimal so plain document records keep their
    exact values.

    Returns:
        The parsed array elements, in file order

    Raises:
        SourceFileError: If the file cannot be read or is not a JSON array
    """
    file_path = Path(file_path)
    try:
        with open(file_path, encoding="utf-8") as f:
            data = json.load(f, parse_float=Decimal, parse_int=Decimal)
    except OSError as e:
        raise SourceFileError(
            f"Could not read data from file '{file_path}'. {e}"
        ) from e
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError
        raise SourceFileError(
            f"File '{file_path}' is not valid JSON. {e}"
        ) from e

    if not isinstance(data, list):
        raise SourceFileError(
            f"File '{file_path}' must contain a JSON array, "
            f"got {type(data).__name__}"
        )

    return data


def write_records(
    handle: TableHandle,
    elements: list[Any],
    codec: RecordCodec | None = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
    dry_run: bool = False,
    file_path: Path | None = None,
) -> RunOutcome:
    """
    Decode and write parsed elements to the bound table, in order.

    Args:
        handle: Table handle returned by check_table (restore mode)
        elements: Parsed array elements from load_source
        codec: Record codec (defaults to the typed format)
        progress_every: Records between two progress messages
        dry_run: Decode every element without writing
        file_path: Source file, reported in the outcome

    Returns:
        RunOutcome; on failure records_transferred equals the index of the
        offending record.
    """
    codec = codec or RecordCodec()
    table_name = handle.table_name
    progress = ProgressReporter("restore", every=progress_every, total=len(elements))

    source = f" from file {file_path}" if file_path else ""
    logger.info(f"Restoring {len(elements):,} records into table {table_name}{source}")

    for index, element in enumerate(elements):
        try:
            record = codec.from_json_object(element, index)
            if not dry_run:
                try:
                    handle.put(record)
                except StoreError as e:
                    raise RecordWriteError(str(e), index) from e
        except MigrationError as e:
            logger.error(e.message)
            logger.warning(
                f"Table {table_name} is partially restored: "
                f"{progress.count} of {len(elements)} records written"
            )
            return RunOutcome.failure(
                e,
                records_transferred=progress.count,
                table_name=table_name,
                file_path=file_path,
            )
        if not dry_run:
            progress.advance()

    if dry_run:
        logger.info(
            f"Dry run: {len(elements):,} records decoded, nothing written "
            f"to {table_name}"
        )
        return RunOutcome.success(0, table_name=table_name, file_path=file_path)

    progress.finish()
    logger.info(f"Finished writing all records to {table_name}")
    return RunOutcome.success(progress.count, table_name=table_name, file_path=file_path)


def import_table(
    handle: TableHandle,
    file_path: Path | str,
    codec: RecordCodec | None = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
    dry_run: bool = False,
) -> RunOutcome:
    """
    Restore every record of a backup file into the bound table.

    The table must already have passed check_table(for_restore=True); it is
    not re-checked here.
    """
    file_path = Path(file_path)
    try:
        elements = load_source(file_path)
    except SourceFileError as e:
        logger.error(e.message)
        return RunOutcome.failure(
            e, table_name=handle.table_name, file_path=file_path
        )

    return write_records(
        handle,
        elements,
        codec=codec,
        progress_every=progress_every,
        dry_run=dry_run,
        file_path=file_path,
    )
