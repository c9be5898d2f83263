"""
Backup and restore engine for a single DynamoDB table.

A backup streams every record of a table into a JSON array file; a restore
writes every record of such a file back into an empty table.
"""

from dynamo_dump.migration.codec import RecordCodec
from dynamo_dump.migration.errors import ErrorKind, MigrationError, RunOutcome
from dynamo_dump.migration.exporter import export_table
from dynamo_dump.migration.guard import TableHandle, check_table
from dynamo_dump.migration.importer import import_table, load_source
from dynamo_dump.migration.runner import run

__all__ = [
    "ErrorKind",
    "MigrationError",
    "RecordCodec",
    "RunOutcome",
    "TableHandle",
    "check_table",
    "export_table",
    "import_table",
    "load_source",
    "run",
]
