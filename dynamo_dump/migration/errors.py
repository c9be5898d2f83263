"""
Error taxonomy and run outcome for backup and restore runs.

Every failure of a run is terminal. Inside the engine failures are raised
as MigrationError subclasses tagged with an ErrorKind; at the pipeline seams
(export_table, import_table, run) they are turned into a failed RunOutcome
that carries the kind, the table, the file, the record index and the
underlying message. Records already written before a failure are never
rolled back; records_transferred tells the caller how far the run got.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    """Reason a run ended without completing."""

    TABLE_NOT_FOUND = "TableNotFound"
    TABLE_NOT_EMPTY = "TableNotEmpty"
    STORE_UNREACHABLE = "StoreUnreachable"
    DESTINATION_EXISTS = "DestinationExists"
    DESTINATION_NOT_WRITABLE = "DestinationNotWritable"
    SCAN_FAILED = "ScanFailed"
    SOURCE_FILE_INVALID = "SourceFileInvalid"
    MALFORMED_RECORD = "MalformedRecord"
    RECORD_WRITE_FAILED = "RecordWriteFailed"


class MigrationError(Exception):
    """
    Base class for run-ending failures.

    Attributes:
        kind: ErrorKind tag for the failure
        record_index: 0-based position of the offending record, if any
    """

    def __init__(
        self, kind: ErrorKind, message: str, record_index: int | None = None
    ):
        super().__init__(message)
        self.kind = kind
        self.record_index = record_index

    @property
    def message(self) -> str:
        return str(self)


class GuardError(MigrationError):
    """Raised when the target table fails its pre-flight check."""

    pass


class DestinationError(MigrationError):
    """Raised when the backup file cannot be created."""

    pass


class SourceFileError(MigrationError):
    """Raised when the restore file cannot be read as a JSON array."""

    def __init__(self, message: str):
        super().__init__(ErrorKind.SOURCE_FILE_INVALID, message)


class MalformedRecordError(MigrationError):
    """Raised when a record cannot be encoded or decoded."""

    def __init__(self, message: str, record_index: int | None = None):
        if record_index is not None:
            message = f"Malformed record #{record_index}: {message}"
        super().__init__(ErrorKind.MALFORMED_RECORD, message, record_index)


class ScanError(MigrationError):
    """Raised when the store fails part-way through a table scan."""

    def __init__(self, message: str):
        super().__init__(ErrorKind.SCAN_FAILED, f"Scan failed: {message}")


class RecordWriteError(MigrationError):
    """Raised when the store rejects a record during restore."""

    def __init__(self, message: str, record_index: int):
        super().__init__(
            ErrorKind.RECORD_WRITE_FAILED,
            f"Error writing record #{record_index}: {message}",
            record_index,
        )


@dataclass(frozen=True)
class RunOutcome:
    """
    Terminal result of a backup or restore run.

    Attributes:
        succeeded: True if every record was transferred
        records_transferred: Records written to the file (backup) or table
                             (restore) before the run ended
        failure_reason: Human readable reason; always set on failure
        error_kind: Failure tag, None on success
        table_name: Table the run worked on
        file_path: File the run read or wrote
        record_index: Offending record position for record-level failures
    """

    succeeded: bool
    records_transferred: int = 0
    failure_reason: str | None = None
    error_kind: ErrorKind | None = None
    table_name: str | None = None
    file_path: Path | None = None
    record_index: int | None = None

    def __post_init__(self) -> None:
        if not self.succeeded and not self.failure_reason:
            raise ValueError("A failed RunOutcome must carry a failure_reason")

    @classmethod
    def success(
        cls,
        records_transferred: int,
        table_name: str | None = None,
        file_path: Path | None = None,
    ) -> RunOutcome:
        return cls(
            succeeded=True,
            records_transferred=records_transferred,
            table_name=table_name,
            file_path=file_path,
        )

    @classmethod
    def failure(
        cls,
        error: MigrationError,
        records_transferred: int = 0,
        table_name: str | None = None,
        file_path: Path | None = None,
    ) -> RunOutcome:
        return cls(
            succeeded=False,
            records_transferred=records_transferred,
            failure_reason=error.message or error.kind.value,
            error_kind=error.kind,
            table_name=table_name,
            file_path=file_path,
            record_index=error.record_index,
        )
