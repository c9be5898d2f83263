"""
Pre-flight check of the target table.

Restores are only allowed into empty tables so that a stale or mismatched
backup can never be mixed into a live dataset. Backups only require the
table to exist; its item count is used as a progress estimate.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from dynamo_dump.migration.errors import ErrorKind, GuardError
from dynamo_dump.store import ScanPage, StoreError
from dynamo_dump.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TableHandle:
    """
    Reference to one table, bound to its name.

    Only check_table creates handles; a handle lives for one run.

    Attributes:
        store: Store exposing describe_table, scan_page and put_item
        table_name: Name of the bound table
        item_count: Approximate item count reported by describe
    """

    store: Any
    table_name: str
    item_count: int = 0

    def scan_pages(self, page_size: int | None = None) -> Iterator[ScanPage]:
        """
        Yield every page of a full-table scan.

        Follows the continuation key of each page until the store returns
        none, so tables larger than one page are read completely.

        Raises:
            StoreError: If a page request fails
        """
        start_key = None
        while True:
            page = self.store.scan_page(
                self.table_name, start_key=start_key, limit=page_size
            )
            yield page

            start_key = page.next_key
            if not start_key:
                return

    def put(self, record: dict[str, Any]) -> None:
        """
        Write one record to the bound table.

        Raises:
            StoreError: If the store rejects the write
        """
        self.store.put_item(self.table_name, record)


def check_table(store: Any, table_name: str, for_restore: bool) -> TableHandle:
    """
    Verify that a table can be used for a backup or restore run.

    Args:
        store: Store exposing describe_table
        table_name: Table to check
        for_restore: True if records will be written into the table

    Returns:
        TableHandle bound to the table

    Raises:
        GuardError: TableNotFound, TableNotEmpty (restore only) or
                    StoreUnreachable
    """
    try:
        descriptor = store.describe_table(table_name)
    except StoreError as e:
        raise GuardError(
            ErrorKind.STORE_UNREACHABLE,
            f"Failed to get table {table_name}'s details. {e}",
        ) from e

    if descriptor is None or not descriptor.exists:
        raise GuardError(
            ErrorKind.TABLE_NOT_FOUND, f"Table {table_name} doesn't exist"
        )

    if for_restore and descriptor.item_count > 0:
        raise GuardError(
            ErrorKind.TABLE_NOT_EMPTY,
            f"Cannot restore data into table {table_name} because it contains "
            f"{descriptor.item_count} records already. "
            f"You can only restore data in empty tables",
        )

    logger.debug(
        f"Table {table_name} ready ({descriptor.item_count} items reported)"
    )
    return TableHandle(
        store=store, table_name=table_name, item_count=descriptor.item_count
    )
