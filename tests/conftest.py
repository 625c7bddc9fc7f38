from __future__ import annotations

from datetime import UTC, datetime

import pytest

from taskstore.locks import LockPolicy
from taskstore.models import STATUS_CODEC, TASK_CODEC, Status, Task
from taskstore.store import FileRecordStore

FAST_POLICY = LockPolicy(timeout=0.3, retry_interval=0.02)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "TASKSTORE_TASKS_FILE",
        "TASKSTORE_STATUSES_FILE",
        "TASKSTORE_LOCK_TIMEOUT",
        "TASKSTORE_LOCK_RETRY_INTERVAL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def tasks_path(tmp_path):
    return tmp_path / "data" / "tasks.json"


@pytest.fixture()
def task_store(tasks_path):
    return FileRecordStore(tasks_path, TASK_CODEC, policy=FAST_POLICY)


@pytest.fixture()
def status_store(tmp_path):
    return FileRecordStore(tmp_path / "data" / "statuses.json", STATUS_CODEC, policy=FAST_POLICY)


def make_task(n: int, status_id: str = "status-1") -> Task:
    return Task(
        id=f"task-{n}",
        text=f"task number {n}",
        created=datetime(2024, 1, 15, 10, 30, n % 60, tzinfo=UTC),
        status_id=status_id,
    )


def make_status(label: str, n: int = 0) -> Status:
    return Status(id=f"status-{n}", label=label, color="#4a90e2")
