"""Task and Status records plus their codecs."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from taskstore.codec import format_timestamp, parse_timestamp


def new_task_id() -> str:
    """<epoch millis>-<8 hex chars>, e.g. 1718000000000-1a2b3c4d."""
    return f"{time.time_ns() // 1_000_000}-{uuid.uuid4().hex[:8]}"


def new_status_id() -> str:
    """status-<8 hex chars>."""
    return "status-" + uuid.uuid4().hex[:8]


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds (what the file can hold)."""
    return datetime.now(UTC).replace(microsecond=0)


def _str_field(d: dict[str, Any], key: str) -> str:
    value = d[key]
    if not isinstance(value, str):
        msg = f"field {key!r} must be a string, got {type(value).__name__}"
        raise TypeError(msg)
    return value


@dataclass
class Task:
    """A work item. id and created are filled in by TaskRepository.save."""

    text: str
    status_id: str
    id: str = ""
    created: datetime | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        created = d["created"]
        return cls(
            id=_str_field(d, "id"),
            text=_str_field(d, "text"),
            created=None if created is None else parse_timestamp(created),
            status_id=_str_field(d, "statusId"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "created": format_timestamp(self.created) if self.created else None,
            "statusId": self.status_id,
        }


@dataclass
class Status:
    """A task state, e.g. Open / #4a90e2."""

    label: str
    color: str
    id: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Status:
        return cls(
            id=_str_field(d, "id"),
            label=_str_field(d, "label"),
            color=_str_field(d, "color"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "color": self.color}


class _TaskCodec:
    fields = ("id", "text", "created", "statusId")

    def to_dict(self, record: Task) -> dict[str, Any]:
        return record.to_dict()

    def from_dict(self, data: dict[str, Any]) -> Task:
        return Task.from_dict(data)


class _StatusCodec:
    fields = ("id", "label", "color")

    def to_dict(self, record: Status) -> dict[str, Any]:
        return record.to_dict()

    def from_dict(self, data: dict[str, Any]) -> Status:
        return Status.from_dict(data)


TASK_CODEC = _TaskCodec()
STATUS_CODEC = _StatusCodec()
