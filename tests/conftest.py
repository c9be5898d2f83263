"""
Shared fixtures for the dynamo_dump test suite.

FakeStore is an in-memory stand-in for DynamoStore with the same three
operations (describe_table, scan_page, put_item), a configurable page size
and failure injection.
"""

import logging
from decimal import Decimal

import pytest

from dynamo_dump.store import ScanPage, StoreError, TableDescriptor


class FakeStore:
    """In-memory table store with DynamoDB-like paging."""

    def __init__(self, tables=None, page_size=2):
        self.tables = {name: list(items) for name, items in (tables or {}).items()}
        self.page_size = page_size
        self.describe_calls = []
        self.scan_calls = []
        self.put_calls = []
        self.describe_error = None
        self.fail_scan_on_call = None
        self.fail_put_at = None

    def describe_table(self, table_name):
        self.describe_calls.append(table_name)
        if self.describe_error:
            raise self.describe_error
        if table_name not in self.tables:
            return None
        return TableDescriptor(
            table_name=table_name, item_count=len(self.tables[table_name])
        )

    def scan_page(self, table_name, start_key=None, limit=None):
        self.scan_calls.append(start_key)
        if self.fail_scan_on_call == len(self.scan_calls):
            raise StoreError(
                "ProvisionedThroughputExceededException: Rate exceeded",
                code="ProvisionedThroughputExceededException",
            )

        items = self.tables[table_name]
        size = limit or self.page_size
        start = start_key["offset"] if start_key else 0
        end = start + size
        next_key = {"offset": end} if end < len(items) else None
        return ScanPage(items=[dict(it) for it in items[start:end]], next_key=next_key)

    def put_item(self, table_name, record):
        if self.fail_put_at == len(self.put_calls):
            raise StoreError(
                "ValidationException: One or more parameter values were invalid",
                code="ValidationException",
            )
        self.put_calls.append(record)
        self.tables[table_name].append(record)


def make_items(count):
    """Build count simple records with string keys and numeric values."""
    return [
        {"id": str(i), "total": Decimal(i) / 2, "name": f"item-{i}"}
        for i in range(count)
    ]


@pytest.fixture
def orders():
    """The three records of the Orders table."""
    return [
        {"id": "1", "total": Decimal("9.5")},
        {"id": "2", "total": Decimal("3")},
        {"id": "3", "total": Decimal("0")},
    ]


@pytest.fixture
def fake_store():
    """Factory for FakeStore instances."""

    def _make(tables=None, page_size=2):
        return FakeStore(tables=tables, page_size=page_size)

    return _make


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handler changes made by setup_logging during a test."""
    yield
    logger = logging.getLogger("dynamo_dump")
    logger.handlers.clear()
    logger.propagate = True
    logger.disabled = False
    logger.setLevel(logging.NOTSET)
