"""
DynamoDB store adapter for backup and restore runs.

Provides a thin wrapper over the low-level boto3 DynamoDB client for:
- Describing a table (existence and approximate item count)
- Scanning one page of items at a time with an explicit continuation key
- Writing a single item

Items cross this boundary as Python-native values (str, Decimal, bool,
bytes, None, list, dict and sets); the DynamoDB wire format is produced and
consumed here with boto3's TypeSerializer/TypeDeserializer. Retries for
throttling and transient errors are delegated to botocore's retry config.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import boto3
import botocore.session
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ProfileNotFound,
    UnknownCredentialError,
)

# Retry configuration defaults (botocore "standard" retry mode)
DEFAULT_MAX_ATTEMPTS = 5
RETRY_MODE = "standard"

# Error code returned by DynamoDB for a missing table
RESOURCE_NOT_FOUND = "ResourceNotFoundException"

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a DynamoDB call fails (transport, auth or service error)."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class TableDescriptor:
    """Result of describing a table."""

    table_name: str
    item_count: int
    exists: bool = True


@dataclass
class ScanPage:
    """
    One page of a table scan.

    Attributes:
        items: Records in this page, as Python-native values
        next_key: Continuation key for the following page, or None when the
                  scan is complete
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    next_key: dict[str, Any] | None = None


def _error_message(error: Exception) -> str:
    if isinstance(error, ClientError):
        err = error.response.get("Error", {})
        code = err.get("Code", "Unknown")
        return f"{code}: {err.get('Message', str(error))}"
    return str(error)


def _error_code(error: Exception) -> str | None:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


def create_session(
    profile: str | None = None,
    region: str | None = None,
    credential_challenge: Callable[[str], str] | None = None,
) -> boto3.Session:
    """
    Create a boto3 session for a named profile and region.

    Args:
        profile: Profile from the shared credentials/config files
                 (None = botocore's default resolution)
        region: Region name (None = profile default)
        credential_challenge: Callable invoked with a prompt when an
                 assume-role profile requires an MFA token code. Defaults to
                 botocore's own prompt.

    Returns:
        Configured boto3 Session

    Raises:
        StoreError: If the profile does not exist
    """
    core_session = botocore.session.Session()

    try:
        session = boto3.Session(
            botocore_session=core_session,
            profile_name=profile,
            region_name=region,
        )
    except ProfileNotFound as e:
        raise StoreError(f"Profile {profile} not found") from e

    if credential_challenge is not None:
        _install_credential_challenge(core_session, credential_challenge)

    logger.debug(
        f"Created session (profile={profile or 'default'}, "
        f"region={session.region_name})"
    )
    return session


def _install_credential_challenge(
    core_session: botocore.session.Session,
    credential_challenge: Callable[[str], str],
) -> None:
    """Route assume-role MFA prompts to the given callable."""
    resolver = core_session.get_component("credential_provider")
    try:
        provider = resolver.get_provider("assume-role")
    except UnknownCredentialError:
        logger.debug("No assume-role provider; MFA challenge not installed")
        return
    # AssumeRoleProvider keeps its MFA prompt callable in _prompter (botocore
    # 1.x, pinned in pyproject.toml); there is no public setter
    if not hasattr(provider, "_prompter"):
        logger.warning(
            "This botocore version does not expose the assume-role MFA prompt; "
            "botocore's own prompt will be used"
        )
        return
    provider._prompter = credential_challenge


class DynamoStore:
    """
    DynamoDB table store used by the migration engine.

    Attributes:
        client: Low-level boto3 DynamoDB client
        page_size: Default number of items requested per scan page
                   (None = service default, 1 MB pages)

    Usage:
        session = create_session(profile="default", region="eu-west-2")
        store = DynamoStore.from_session(session)

        descriptor = store.describe_table("Orders")
        page = store.scan_page("Orders")
        while page.next_key:
            page = store.scan_page("Orders", start_key=page.next_key)

        store.put_item("Orders", {"id": "1", "total": Decimal("9.5")})
    """

    def __init__(self, client: Any, page_size: int | None = None):
        self.client = client
        self.page_size = page_size
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    @classmethod
    def from_session(
        cls,
        session: boto3.Session,
        endpoint_url: str | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        page_size: int | None = None,
    ) -> DynamoStore:
        """
        Build a store from a boto3 session.

        Args:
            session: Session carrying credentials and region
            endpoint_url: Alternative endpoint (e.g. a local DynamoDB)
            max_attempts: Total attempts per call, including retries
            page_size: Default scan page size

        Raises:
            StoreError: If the client cannot be created
        """
        config = Config(retries={"max_attempts": max_attempts, "mode": RETRY_MODE})
        try:
            client = session.client(
                "dynamodb", endpoint_url=endpoint_url, config=config
            )
        except BotoCoreError as e:
            raise StoreError(f"Failed to create DynamoDB client: {e}") from e

        if endpoint_url:
            logger.debug(f"Using DynamoDB endpoint {endpoint_url}")
        return cls(client, page_size=page_size)

    # -------------------------
    # Helpers
    # -------------------------
    def _serialize_item(self, item: dict[str, Any]) -> dict[str, Any]:
        return {k: self._serializer.serialize(v) for k, v in item.items()}

    def _deserialize_item(self, ddb_item: dict[str, Any]) -> dict[str, Any]:
        return {k: self._deserializer.deserialize(v) for k, v in ddb_item.items()}

    # -------------------------
    # Store operations
    # -------------------------
    def describe_table(self, table_name: str) -> TableDescriptor | None:
        """
        Describe a table.

        Returns:
            TableDescriptor, or None if the table does not exist

        Raises:
            StoreError: On any other failure
        """
        try:
            response = self.client.describe_table(TableName=table_name)
        except ClientError as e:
            if _error_code(e) == RESOURCE_NOT_FOUND:
                return None
            raise StoreError(_error_message(e), code=_error_code(e)) from e
        except BotoCoreError as e:
            raise StoreError(_error_message(e)) from e

        table = response.get("Table")
        if not table:
            return None

        return TableDescriptor(
            table_name=table.get("TableName", table_name),
            item_count=int(table.get("ItemCount", 0)),
        )

    def scan_page(
        self,
        table_name: str,
        start_key: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> ScanPage:
        """
        Fetch one page of a full-table scan.

        Args:
            table_name: Table to scan
            start_key: Continuation key returned by the previous page
            limit: Items per page (defaults to the store's page_size)

        Raises:
            StoreError: If the scan request fails
        """
        kwargs: dict[str, Any] = {"TableName": table_name, "Select": "ALL_ATTRIBUTES"}
        limit = limit or self.page_size
        if limit:
            kwargs["Limit"] = limit
        if start_key:
            kwargs["ExclusiveStartKey"] = start_key

        try:
            response = self.client.scan(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise StoreError(_error_message(e), code=_error_code(e)) from e

        items = [self._deserialize_item(it) for it in response.get("Items", [])]
        return ScanPage(items=items, next_key=response.get("LastEvaluatedKey"))

    def put_item(self, table_name: str, record: dict[str, Any]) -> None:
        """
        Write a single item.

        Raises:
            StoreError: If the item cannot be serialized or the write fails
        """
        try:
            item = self._serialize_item(record)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise StoreError(f"Cannot serialize item: {e}") from e

        try:
            self.client.put_item(TableName=table_name, Item=item)
        except (ClientError, BotoCoreError) as e:
            raise StoreError(_error_message(e), code=_error_code(e)) from e
