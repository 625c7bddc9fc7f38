"""JSON serializer: layout, strict decoding, timestamps."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta, timezone

import pytest

from conftest import make_status, make_task
from taskstore.codec import JsonSerializer, format_timestamp, parse_timestamp
from taskstore.errors import MalformedData
from taskstore.models import STATUS_CODEC, TASK_CODEC, Task

tasks = JsonSerializer(TASK_CODEC)
statuses = JsonSerializer(STATUS_CODEC)


def test_round_trip_preserves_order_and_fields():
    records = [make_task(3), make_task(1), make_task(2, status_id="status-9")]
    records[1].text = "café <b>naïve</b> \"quoted\""
    assert tasks.decode(tasks.encode(records)) == records


def test_status_round_trip():
    records = [make_status("Open", 1), make_status("Done", 2)]
    assert statuses.decode(statuses.encode(records)) == records


def test_encode_is_pretty_and_ordered():
    out = tasks.encode([make_task(0)]).decode("utf-8")
    assert out == (
        "[\n"
        "  {\n"
        '    "id": "task-0",\n'
        '    "text": "task number 0",\n'
        '    "created": "2024-01-15T10:30:00Z",\n'
        '    "statusId": "status-1"\n'
        "  }\n"
        "]\n"
    )


def test_encode_is_deterministic():
    records = [make_task(n) for n in range(5)]
    assert tasks.encode(records) == tasks.encode(list(records))


def test_encode_keeps_non_ascii_literal():
    out = statuses.encode([make_status("Готово")])
    assert "Готово".encode() in out


def test_encode_empty_collection():
    assert tasks.encode([]) == b"[]\n"


@pytest.mark.parametrize("data", [b"", b"   \n\t", b"[]", b"  []\n"])
def test_decode_empty_forms(data):
    assert tasks.decode(data) == []


@pytest.mark.parametrize(
    ("data", "fragment"),
    [
        (b'[{"id": "a", "text": "x"', "invalid JSON"),
        (b'{"id": "a"}', "expected a JSON array"),
        (b'"just a string"', "expected a JSON array"),
        (b"[1, 2]", "expected an object"),
        (b"\xff\xfe[]", "not UTF-8"),
    ],
)
def test_decode_structural_errors(data, fragment):
    with pytest.raises(MalformedData, match=fragment):
        tasks.decode(data)


def _task_obj(**overrides):
    obj = {"id": "t1", "text": "x", "created": "2024-01-15T10:30:00Z", "statusId": "s1"}
    obj.update(overrides)
    return obj


def test_decode_missing_field_reports_index():
    obj = _task_obj()
    del obj["statusId"]
    data = json.dumps([_task_obj(), obj]).encode()
    with pytest.raises(MalformedData) as excinfo:
        tasks.decode(data)
    assert excinfo.value.index == 1
    assert "statusId" in str(excinfo.value)


def test_decode_rejects_unknown_field():
    data = json.dumps([_task_obj(priority="high")]).encode()
    with pytest.raises(MalformedData, match="unknown field"):
        tasks.decode(data)


def test_decode_rejects_wrong_type():
    data = json.dumps([_task_obj(text=42)]).encode()
    with pytest.raises(MalformedData, match="must be a string"):
        tasks.decode(data)


def test_decode_rejects_bad_timestamp():
    data = json.dumps([_task_obj(created="15/01/2024")]).encode()
    with pytest.raises(MalformedData, match="record 0"):
        tasks.decode(data)


def test_decode_never_returns_partial_list():
    data = json.dumps([_task_obj(id="ok"), _task_obj(id=None)]).encode()
    with pytest.raises(MalformedData):
        tasks.decode(data)


def test_null_created_round_trips():
    task = Task(id="t1", text="x", status_id="s1")
    assert tasks.decode(tasks.encode([task])) == [task]


def test_format_timestamp_converts_to_utc():
    plus_two = timezone(timedelta(hours=2))
    dt = datetime(2024, 1, 15, 12, 30, 0, 987654, tzinfo=plus_two)
    assert format_timestamp(dt) == "2024-01-15T10:30:00Z"


def test_format_timestamp_naive_is_utc():
    assert format_timestamp(datetime(2024, 1, 15, 10, 30)) == "2024-01-15T10:30:00Z"


def test_parse_timestamp():
    assert parse_timestamp("2024-01-15T10:30:00Z") == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
    with pytest.raises(ValueError):
        parse_timestamp("2024-01-15T10:30:00+00:00")


class _ExtraFieldCodec:
    fields = TASK_CODEC.fields

    def to_dict(self, record):
        return {**TASK_CODEC.to_dict(record), "priority": "high"}

    def from_dict(self, data):
        return TASK_CODEC.from_dict(data)


class _MissingFieldCodec(_ExtraFieldCodec):
    def to_dict(self, record):
        d = TASK_CODEC.to_dict(record)
        del d["statusId"]
        return d


def test_encode_rejects_wrong_type():
    bad = Task(id="t2", text=None, status_id="s1")
    with pytest.raises(MalformedData) as excinfo:
        tasks.encode([make_task(1), bad])
    assert excinfo.value.index == 1


def test_encode_rejects_extra_field():
    with pytest.raises(MalformedData, match="unknown field"):
        JsonSerializer(_ExtraFieldCodec()).encode([make_task(1)])


def test_encode_rejects_missing_field():
    with pytest.raises(MalformedData, match="statusId"):
        JsonSerializer(_MissingFieldCodec()).encode([make_task(1)])


def test_parse_timestamp_drops_fractional_seconds():
    expected = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
    assert parse_timestamp("2024-01-15T10:30:00.5Z") == expected
    assert parse_timestamp("2024-01-15T10:30:00.123456Z") == expected
