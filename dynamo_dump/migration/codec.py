"""
Record codec: one table item <-> one JSON object.

Two representations are supported:

- typed (default): DynamoDB JSON, e.g. {"id": {"S": "1"}, "total": {"N": "9.5"}}.
  Lossless for every value kind the store holds. Numbers keep their exact
  text, binary values are base64 text and sets keep their set type.
- document: plain JSON, e.g. {"id": "1", "total": 9.5}. Numbers are read
  back as Decimal, and a fractional number that a float cannot hold exactly
  is refused rather than rounded. Binary values are written as base64
  strings and sets as arrays, so those two kinds come back as strings and
  lists.

Both representations are pretty-printed with sorted keys so that two backups
of the same data diff cleanly.
"""

from __future__ import annotations

import base64
import binascii
import json
from decimal import Decimal, InvalidOperation
from typing import Any

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

from dynamo_dump.config.run_config import RecordFormat
from dynamo_dump.migration.errors import MalformedRecordError

# Indentation of each pretty-printed record
JSON_INDENT = 2

# DynamoDB JSON type tags
SET_TAGS = ("SS", "NS", "BS")
VALID_TAGS = ("S", "N", "B", "BOOL", "NULL", "M", "L", "SS", "NS", "BS")


def _b64(value: bytes | Binary) -> str:
    if isinstance(value, Binary):
        value = value.value
    return base64.b64encode(value).decode("ascii")


def _set_sort_key(value: Any) -> Any:
    if isinstance(value, Binary):
        return value.value
    return value


class DocumentEncoder(json.JSONEncoder):
    """JSON encoder for plain document records."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            # Integral numbers stay integers; others must survive as a float
            if obj == obj.to_integral_value():
                return int(obj)
            number = float(obj)
            if Decimal(repr(number)) != obj:
                raise ValueError(
                    f"number {obj} cannot be written as plain JSON without "
                    f"rounding; use the typed format"
                )
            return number
        if isinstance(obj, (bytes, bytearray, Binary)):
            return _b64(bytes(obj) if isinstance(obj, bytearray) else obj)
        if isinstance(obj, (set, frozenset)):
            return sorted(obj, key=_set_sort_key)
        return super().default(obj)


class RecordCodec:
    """
    Encoder/decoder for backup file records.

    Attributes:
        record_format: RecordFormat.TYPED or RecordFormat.DOCUMENT

    Usage:
        codec = RecordCodec()
        text = codec.encode({"id": "1", "total": Decimal("9.5")})
        record = codec.decode(text)

        # Element already parsed from a JSON array
        record = codec.from_json_object(element, index=3)
    """

    def __init__(self, record_format: RecordFormat = RecordFormat.TYPED):
        self.record_format = RecordFormat(record_format)
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    # -------------------------
    # Encoding
    # -------------------------
    def to_json_object(
        self, record: dict[str, Any], index: int | None = None
    ) -> dict[str, Any]:
        """
        Convert a record to a JSON-compatible object.

        Raises:
            MalformedRecordError: If a value cannot be represented
        """
        if self.record_format is RecordFormat.DOCUMENT:
            return record

        try:
            return {
                name: self._typed_to_json(self._serializer.serialize(value))
                for name, value in record.items()
            }
        except (TypeError, ValueError, ArithmeticError) as e:
            raise MalformedRecordError(str(e), index) from e

    def encode(self, record: dict[str, Any], index: int | None = None) -> str:
        """
        Encode a record as pretty-printed JSON text.

        Args:
            record: Mapping of attribute name to value
            index: Position of the record, used in error messages

        Raises:
            MalformedRecordError: If a value cannot be represented
        """
        obj = self.to_json_object(record, index)
        try:
            return json.dumps(
                obj,
                cls=DocumentEncoder,
                indent=JSON_INDENT,
                sort_keys=True,
                ensure_ascii=False,
            )
        except (TypeError, ValueError, ArithmeticError) as e:
            raise MalformedRecordError(str(e), index) from e

    def _typed_to_json(self, typed: dict[str, Any]) -> dict[str, Any]:
        """Make a serialized DynamoDB value JSON-safe and deterministic."""
        tag, value = next(iter(typed.items()))
        if tag == "B":
            return {tag: _b64(value)}
        if tag == "BS":
            return {tag: sorted(_b64(v) for v in value)}
        if tag in ("SS", "NS"):
            return {tag: sorted(value)}
        if tag == "L":
            return {tag: [self._typed_to_json(v) for v in value]}
        if tag == "M":
            return {tag: {k: self._typed_to_json(v) for k, v in value.items()}}
        return typed

    # -------------------------
    # Decoding
    # -------------------------
    def decode(self, text: str, index: int | None = None) -> dict[str, Any]:
        """
        Decode one record from JSON text.

        Args:
            text: JSON object text
            index: Position of the record in its sequence

        Raises:
            MalformedRecordError: If the text is not a valid record
        """
        try:
            obj = json.loads(text, parse_float=Decimal, parse_int=Decimal)
        except json.JSONDecodeError as e:
            raise MalformedRecordError(f"invalid JSON ({e})", index) from e
        return self.from_json_object(obj, index)

    def from_json_object(self, obj: Any, index: int | None = None) -> dict[str, Any]:
        """
        Decode one record from an already-parsed JSON value.

        Raises:
            MalformedRecordError: If the value is not a valid record
        """
        if not isinstance(obj, dict):
            raise MalformedRecordError(
                f"expected a JSON object, got {type(obj).__name__}", index
            )

        if self.record_format is RecordFormat.DOCUMENT:
            return {name: _document_value(value) for name, value in obj.items()}

        record: dict[str, Any] = {}
        for name, value in obj.items():
            try:
                record[name] = self._deserializer.deserialize(
                    self._json_to_typed(value)
                )
            except (TypeError, ValueError, KeyError, ArithmeticError) as e:
                raise MalformedRecordError(
                    f"attribute '{name}': {e}", index
                ) from e
        return record

    def _json_to_typed(self, value: Any) -> dict[str, Any]:
        """Validate a DynamoDB JSON value and restore its binary payloads."""
        if not isinstance(value, dict) or len(value) != 1:
            raise ValueError(f"expected a single-key type descriptor, got {value!r}")

        tag, inner = next(iter(value.items()))
        if tag not in VALID_TAGS:
            raise ValueError(f"unknown type descriptor '{tag}'")

        if tag in SET_TAGS or tag == "L":
            if not isinstance(inner, list):
                raise ValueError(f"'{tag}' value must be a list")
        if tag in ("S", "N") and not isinstance(inner, str):
            raise ValueError(f"'{tag}' value must be a string")
        if tag == "BOOL" and not isinstance(inner, bool):
            raise ValueError("'BOOL' value must be true or false")
        if tag == "NULL" and inner is not True:
            raise ValueError("'NULL' value must be true")
        if tag == "SS" and not all(isinstance(v, str) for v in inner):
            raise ValueError("'SS' members must be strings")
        if tag == "N":
            _check_number(inner)
        if tag == "NS":
            for v in inner:
                _check_number(v)

        if tag == "B":
            return {tag: _b64decode(inner)}
        if tag == "BS":
            return {tag: [_b64decode(v) for v in inner]}
        if tag == "L":
            return {tag: [self._json_to_typed(v) for v in inner]}
        if tag == "M":
            if not isinstance(inner, dict):
                raise ValueError("'M' value must be an object")
            return {tag: {k: self._json_to_typed(v) for k, v in inner.items()}}
        return value


def _check_number(value: Any) -> None:
    if not isinstance(value, str):
        raise ValueError("number value must be text")
    try:
        number = Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"invalid number '{value}'") from e
    if not number.is_finite():
        raise ValueError(f"invalid number '{value}'")


def _b64decode(value: Any) -> bytes:
    if not isinstance(value, str):
        raise ValueError("binary value must be base64 text")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 binary value: {e}") from e


def _document_value(value: Any) -> Any:
    # Numbers are Decimal in the store's value model
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, list):
        return [_document_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _document_value(v) for k, v in value.items()}
    return value
