"""
Run configuration for a single backup or restore.

A RunConfig is built once by the CLI layer (or by a caller embedding the
engine) and handed unchanged to ``dynamo_dump.migration.run``. It is frozen,
so nothing about a run can change after it starts and no state survives
from one run to the next.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from dynamo_dump.config.loader import ConfigError

# Default backup file name when none is supplied
DEFAULT_FILE_NAME = "DynamoDBData.json"

# Number of records between two progress messages
DEFAULT_PROGRESS_EVERY = 100


class Mode(str, Enum):
    """Direction of a run."""

    BACKUP = "backup"  # table -> file
    RESTORE = "restore"  # file -> table


class RecordFormat(str, Enum):
    """JSON representation used for each record in the backup file."""

    TYPED = "typed"  # DynamoDB JSON ({"S": ...}), lossless
    DOCUMENT = "document"  # plain JSON objects


def _coerce_enum(enum_cls: type[Enum], value: Any, label: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise ConfigError(
            f"Invalid {label} '{value}'. Must be one of: {valid}"
        ) from None


@dataclass(frozen=True)
class RunConfig:
    """
    Immutable description of one backup or restore run.

    Attributes:
        mode: Mode.BACKUP or Mode.RESTORE
        table_name: Name of the table to read from or write to
        file_path: Backup file to write (backup) or read (restore)
        overwrite_existing: Replace an existing backup file (backup only)
        record_format: JSON representation of each record
        page_size: Items requested per scan page (None = store default)
        progress_every: Records between two progress messages
        dry_run: Decode the backup file without writing (restore only)

    Usage:
        config = RunConfig(
            mode=Mode.BACKUP,
            table_name="Orders",
            file_path=Path("orders.json"),
        )
    """

    mode: Mode
    table_name: str
    file_path: Path
    overwrite_existing: bool = False
    record_format: RecordFormat = RecordFormat.TYPED
    page_size: int | None = None
    progress_every: int = DEFAULT_PROGRESS_EVERY
    dry_run: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.mode, Mode):
            raise ConfigError(f"mode must be a Mode, got {self.mode!r}")
        if not isinstance(self.record_format, RecordFormat):
            raise ConfigError(
                f"record_format must be a RecordFormat, got {self.record_format!r}"
            )
        if not self.table_name or not self.table_name.strip():
            raise ConfigError("table_name must not be empty")
        if self.page_size is not None and self.page_size < 1:
            raise ConfigError(f"page_size must be >= 1, got {self.page_size}")
        if self.progress_every < 1:
            raise ConfigError(
                f"progress_every must be >= 1, got {self.progress_every}"
            )

    @property
    def is_restore(self) -> bool:
        return self.mode is Mode.RESTORE

    @classmethod
    def from_options(
        cls,
        mode: Mode | str,
        table_name: str,
        file_path: Path | str | None = None,
        overwrite_existing: bool = False,
        record_format: RecordFormat | str = RecordFormat.TYPED,
        page_size: int | None = None,
        progress_every: int = DEFAULT_PROGRESS_EVERY,
        dry_run: bool = False,
    ) -> RunConfig:
        """
        Build a RunConfig from loosely typed option values.

        String modes and formats are matched case-insensitively; a missing
        file path falls back to DEFAULT_FILE_NAME.

        Raises:
            ConfigError: If any option value is invalid
        """
        return cls(
            mode=_coerce_enum(Mode, mode, "mode"),
            table_name=table_name,
            file_path=Path(file_path) if file_path else Path(DEFAULT_FILE_NAME),
            overwrite_existing=overwrite_existing,
            record_format=_coerce_enum(RecordFormat, record_format, "record format"),
            page_size=page_size,
            progress_every=progress_every,
            dry_run=dry_run,
        )
