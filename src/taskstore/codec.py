"""Collection <-> JSON bytes.

File layout is always a single pretty-printed array:

    [
      {
        "id": "1718000000000-1a2b3c4d",
        "text": "buy milk",
        "created": "2024-01-15T10:30:00Z",
        "statusId": "status-1"
      }
    ]

Decoding is strict: anything that is not an array of well-formed records
raises MalformedData. Records are never dropped or coerced.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

from taskstore.errors import MalformedData

if TYPE_CHECKING:
    from collections.abc import Iterable

T = TypeVar("T")

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_FRACTIONAL_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class RecordCodec(Protocol[T]):
    """Per-entity mapping between a record and its JSON object."""

    fields: tuple[str, ...]

    def to_dict(self, record: T) -> dict[str, Any]: ...

    def from_dict(self, data: dict[str, Any]) -> T: ...


def format_timestamp(dt: datetime) -> str:
    """ISO-8601 UTC, second precision, literal Z. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Inverse of format_timestamp. Fractional seconds are accepted and dropped."""
    if not isinstance(value, str):
        msg = f"expected timestamp string, got {type(value).__name__}"
        raise TypeError(msg)
    fmt = _FRACTIONAL_FORMAT if "." in value else TIMESTAMP_FORMAT
    return datetime.strptime(value, fmt).replace(microsecond=0, tzinfo=UTC)


class JsonSerializer(Generic[T]):
    """encode/decode a whole collection using one RecordCodec."""

    def __init__(self, codec: RecordCodec[T]) -> None:
        self.codec = codec

    def encode(self, records: Iterable[T]) -> bytes:
        """Raises MalformedData for any record decode would reject."""
        items = []
        for i, record in enumerate(records):
            d = self.codec.to_dict(record)
            self._check(d, i)
            items.append({name: d[name] for name in self.codec.fields})
        return (json.dumps(items, indent=2, ensure_ascii=False) + "\n").encode("utf-8")

    def decode(self, data: bytes) -> list[T]:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"not UTF-8: {exc}"
            raise MalformedData(msg) from exc

        text = text.strip()
        if not text or text == "[]":
            return []

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"invalid JSON: {exc}"
            raise MalformedData(msg) from exc

        if not isinstance(raw, list):
            msg = f"expected a JSON array, got {type(raw).__name__}"
            raise MalformedData(msg)

        records: list[T] = []
        for i, obj in enumerate(raw):
            if not isinstance(obj, dict):
                msg = f"expected an object, got {type(obj).__name__}"
                raise MalformedData(msg, index=i)
            records.append(self._check(obj, i))
        return records

    def _check(self, obj: dict[str, Any], index: int) -> T:
        unknown = set(obj) - set(self.codec.fields)
        if unknown:
            msg = f"unknown field(s): {', '.join(sorted(unknown))}"
            raise MalformedData(msg, index=index)
        try:
            return self.codec.from_dict(obj)
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedData(_describe(exc), index=index) from exc


def _describe(exc: Exception) -> str:
    if isinstance(exc, KeyError):
        return f"missing field {exc.args[0]!r}"
    return str(exc)
