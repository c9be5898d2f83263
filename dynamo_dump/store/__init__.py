"""
Table store access for backup and restore.

The migration engine only needs describe, scan-page and put operations; this
package provides the DynamoDB implementation of those three calls.
"""

from dynamo_dump.store.dynamodb import (
    DynamoStore,
    ScanPage,
    StoreError,
    TableDescriptor,
    create_session,
)

__all__ = [
    "DynamoStore",
    "ScanPage",
    "StoreError",
    "TableDescriptor",
    "create_session",
]
