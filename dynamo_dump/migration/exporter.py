"""
Backup pipeline: paginated full-table scan -> JSON array file.

Records are streamed page by page straight into the output file, so peak
memory is bounded by one scan page whatever the size of the table.

File layout:

    [
    {
      "id": {"S": "1"}
    },
    {
      "id": {"S": "2"}
    }
    ]
"""

from __future__ import annotations

from pathlib import Path
from typing import IO

from dynamo_dump.config.run_config import DEFAULT_PROGRESS_EVERY
from dynamo_dump.migration.codec import RecordCodec
from dynamo_dump.migration.errors import (
    DestinationError,
    ErrorKind,
    MigrationError,
    RunOutcome,
    ScanError,
)
from dynamo_dump.migration.guard import TableHandle
from dynamo_dump.migration.progress import ProgressReporter
from dynamo_dump.store import StoreError
from dynamo_dump.utils.logging import get_logger

logger = get_logger(__name__)


class JsonArrayWriter:
    """
    Writes pre-encoded JSON elements as one JSON array.

    Elements are separated by a comma and a newline; there is no comma after
    the last element, so the array can be streamed without knowing its length.
    """

    def __init__(self, stream: IO[str]):
        self.stream = stream
        self.count = 0
        self.stream.write("[\n")

    def write(self, element: str) -> None:
        if self.count:
            self.stream.write(",\n")
        self.stream.write(element)
        self.count += 1

    def close(self) -> None:
        self.stream.write("\n]\n" if self.count else "]\n")


def check_destination(file_path: Path, overwrite: bool) -> None:
    """
    Refuse to replace an existing backup file unless overwrite is set.

    Does not touch the file or the store.

    Raises:
        DestinationError: DestinationExists
    """
    if file_path.exists() and not overwrite:
        raise DestinationError(
            ErrorKind.DESTINATION_EXISTS,
            f"File {file_path} already exists. To avoid overwriting data, "
            f"delete it manually first or use the overwrite option",
        )


def prepare_destination(file_path: Path, overwrite: bool) -> None:
    """
    Make sure file_path can be created, deleting an existing file if allowed.

    Raises:
        DestinationError: DestinationExists or DestinationNotWritable
    """
    check_destination(file_path, overwrite)

    if file_path.exists():
        logger.warning(f"Deleting existing backup file {file_path}")
        try:
            file_path.unlink()
        except OSError as e:
            raise DestinationError(
                ErrorKind.DESTINATION_NOT_WRITABLE,
                f"There was an error deleting existing backup file {file_path}. {e}",
            ) from e


def export_table(
    handle: TableHandle,
    file_path: Path | str,
    overwrite: bool = False,
    codec: RecordCodec | None = None,
    page_size: int | None = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
) -> RunOutcome:
    """
    Write every record of a table to a JSON array file.

    Args:
        handle: Table handle returned by check_table
        file_path: Backup file to create
        overwrite: Replace file_path if it already exists
        codec: Record codec (defaults to the typed format)
        page_size: Items requested per scan page
        progress_every: Records between two progress messages

    Returns:
        RunOutcome with the number of records written. On a scan failure the
        partially written file is left in place.
    """
    file_path = Path(file_path)
    codec = codec or RecordCodec()
    table_name = handle.table_name

    def failed(error: MigrationError, written: int = 0) -> RunOutcome:
        logger.error(error.message)
        return RunOutcome.failure(
            error, records_transferred=written, table_name=table_name,
            file_path=file_path,
        )

    try:
        prepare_destination(file_path, overwrite)
    except DestinationError as e:
        return failed(e)

    logger.info(f"Backing up data for table {table_name} to file {file_path}")
    progress = ProgressReporter("backup", every=progress_every, total=handle.item_count)

    try:
        with open(file_path, "w", encoding="utf-8") as f:
            writer = JsonArrayWriter(f)
            for page in handle.scan_pages(page_size):
                logger.debug(f"Scanned page with {len(page.items)} items")
                for record in page.items:
                    writer.write(codec.encode(record, index=progress.count))
                    progress.advance()
            writer.close()
    except StoreError as e:
        logger.warning(
            f"Partial backup file left in place: {file_path} "
            f"({progress.count} records written)"
        )
        return failed(ScanError(str(e)), progress.count)
    except MigrationError as e:
        return failed(e, progress.count)
    except OSError as e:
        error = DestinationError(
            ErrorKind.DESTINATION_NOT_WRITABLE,
            f"Could not write backup file {file_path}. {e}",
        )
        return failed(error, progress.count)

    progress.finish()
    logger.info(f"Finished exporting {progress.count} records from {table_name}")
    return RunOutcome.success(progress.count, table_name=table_name, file_path=file_path)
