"""File-backed record store: one JSON array per collection, guarded by flock.

Layout:
    data/
        tasks.json        # [{"id", "text", "created", "statusId"}, ...]
        statuses.json     # [{"id", "label", "color"}, ...]

Reads take a shared flock, writes take an exclusive flock and replace the
whole file. Lock attempts are non-blocking and retried every 100 ms for up
to 5 s before LockTimeout.

save/update/delete are read_all() then write_all(): a concurrent mutator in
between can have its change overwritten (lost update). Serialize above the
store if that matters.
"""

from taskstore.codec import JsonSerializer, RecordCodec
from taskstore.config import StoreConfig, init_config, load_config
from taskstore.errors import (
    ConfigError,
    LockInterrupted,
    LockTimeout,
    MalformedData,
    StoreError,
    StoreReadFailure,
    StoreWriteFailure,
)
from taskstore.locks import LockMode, LockPolicy
from taskstore.models import Status, Task
from taskstore.repositories import StatusRepository, TaskRepository
from taskstore.store import FileRecordStore

__all__ = [
    "ConfigError",
    "FileRecordStore",
    "JsonSerializer",
    "LockInterrupted",
    "LockMode",
    "LockPolicy",
    "LockTimeout",
    "MalformedData",
    "RecordCodec",
    "Status",
    "StatusRepository",
    "StoreConfig",
    "StoreError",
    "StoreReadFailure",
    "StoreWriteFailure",
    "Task",
    "TaskRepository",
    "init_config",
    "load_config",
]
