"""Entity-level access on top of FileRecordStore.

Repositories fill in generated fields (IDs, creation time) and log every
mutation. They do not validate or enforce uniqueness; callers check that
(e.g. duplicate status labels) before calling save/update.
"""

from __future__ import annotations

import logging
from pathlib import Path

from taskstore.locks import DEFAULT_POLICY, LockPolicy
from taskstore.models import STATUS_CODEC, TASK_CODEC, Status, Task, new_status_id, new_task_id, utc_now
from taskstore.store import FileRecordStore

logger = logging.getLogger("taskstore.repositories")


class TaskRepository:
    def __init__(self, store: FileRecordStore[Task]) -> None:
        self.store = store

    @classmethod
    def for_path(cls, path: Path | str, policy: LockPolicy = DEFAULT_POLICY) -> TaskRepository:
        return cls(FileRecordStore(path, TASK_CODEC, policy=policy))

    def find_all(self) -> list[Task]:
        return self.store.read_all()

    def find_by_id(self, task_id: str) -> Task | None:
        return self.store.find_by_id(task_id)

    def save(self, task: Task) -> Task:
        """Append task, generating id and created when missing."""
        if not task.id:
            task.id = new_task_id()
        if task.created is None:
            task.created = utc_now()
        self.store.save(task)
        logger.info("saved task %s", task.id)
        return task

    def update(self, task: Task) -> Task:
        self.store.update(task)
        logger.info("updated task %s", task.id)
        return task

    def delete_by_id(self, task_id: str) -> bool:
        deleted = self.store.delete_by_id(task_id)
        if deleted:
            logger.info("deleted task %s", task_id)
        return deleted

    def delete_all(self) -> None:
        self.store.delete_all()
        logger.info("deleted all tasks")

    def count(self) -> int:
        return self.store.count()


class StatusRepository:
    def __init__(self, store: FileRecordStore[Status]) -> None:
        self.store = store

    @classmethod
    def for_path(cls, path: Path | str, policy: LockPolicy = DEFAULT_POLICY) -> StatusRepository:
        return cls(FileRecordStore(path, STATUS_CODEC, policy=policy))

    def find_all(self) -> list[Status]:
        return self.store.read_all()

    def find_by_id(self, status_id: str) -> Status | None:
        return self.store.find_by_id(status_id)

    def find_by_label(self, label: str) -> Status | None:
        """First status whose label matches case-insensitively."""
        wanted = label.casefold()
        return self.store.find_by(lambda s: s.label.casefold() == wanted)

    def save(self, status: Status) -> Status:
        if not status.id:
            status.id = new_status_id()
        self.store.save(status)
        logger.info("saved status %s", status.id)
        return status

    def update(self, status: Status) -> Status:
        self.store.update(status)
        logger.info("updated status %s", status.id)
        return status

    def delete_by_id(self, status_id: str) -> bool:
        deleted = self.store.delete_by_id(status_id)
        if deleted:
            logger.info("deleted status %s", status_id)
        return deleted

    def delete_all(self) -> None:
        self.store.delete_all()
        logger.info("deleted all statuses")

    def count(self) -> int:
        return self.store.count()
