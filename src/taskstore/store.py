"""FileRecordStore: one ordered collection in one JSON file.

    store = FileRecordStore(Path("data/tasks.json"), TASK_CODEC)
    store.save(Task(text="buy milk", status_id="status-1", id="t-1"))
    store.find_by_id("t-1")
    store.delete_by_id("t-1")

Every operation loads or rewrites the whole file. Reads hold a shared flock,
writes hold an exclusive flock across truncate + write, so a cooperating
reader sees either the old content or the new, never the empty gap between.

Lost updates: save/update/delete_by_id are read_all() followed by
write_all(), two separate lock sections. Two concurrent mutators can both
read the same snapshot and the second write discards the first one's change.
Callers that need more must serialize mutations above this class.
"""

from __future__ import annotations

import logging
import os
from operator import attrgetter
from pathlib import Path
from typing import TYPE_CHECKING, Generic, TypeVar

from taskstore.codec import JsonSerializer, RecordCodec
from taskstore.errors import StoreReadFailure, StoreWriteFailure
from taskstore.locks import DEFAULT_POLICY, LockMode, LockPolicy, locked

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

T = TypeVar("T")

logger = logging.getLogger("taskstore.store")


class FileRecordStore(Generic[T]):
    """JSON-array-backed collection of records keyed by a string identifier."""

    def __init__(
        self,
        path: Path | str,
        codec: RecordCodec[T],
        *,
        key: Callable[[T], str] = attrgetter("id"),
        policy: LockPolicy = DEFAULT_POLICY,
    ) -> None:
        self.path = Path(path)
        self.serializer = JsonSerializer(codec)
        self.key = key
        self.policy = policy

    def __repr__(self) -> str:
        return f"FileRecordStore({str(self.path)!r})"

    # ------------------------------------------------------------------
    # Whole-collection I/O
    # ------------------------------------------------------------------

    def read_all(self) -> list[T]:
        """Load the collection under a shared lock. Missing file -> []."""
        if not self.path.exists():
            logger.debug("%s does not exist, empty collection", self.path)
            return []
        try:
            with self.path.open("rb") as f, locked(f, LockMode.SHARED, self.policy):
                # Size is only meaningful once the lock is held: a writer may
                # be between truncate and write.
                data = f.read()
            records = self.serializer.decode(data)
        except FileNotFoundError:
            logger.debug("%s vanished before open, empty collection", self.path)
            return []
        except Exception as exc:
            logger.error("read of %s failed: %s", self.path, exc)
            raise StoreReadFailure(self.path, exc) from exc
        logger.debug("read %d records from %s", len(records), self.path)
        return records

    def write_all(self, records: Iterable[T]) -> None:
        """Replace the file content with exactly records, under an exclusive lock."""
        records = list(records)
        try:
            data = self.serializer.encode(records)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # O_CREAT without O_TRUNC: an existing file keeps its mtime until locked.
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
            with os.fdopen(fd, "r+b") as f, locked(f, LockMode.EXCLUSIVE, self.policy):
                f.seek(0)
                f.truncate()
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
        except Exception as exc:
            logger.error("write of %s failed: %s", self.path, exc)
            raise StoreWriteFailure(self.path, exc) from exc
        logger.debug("wrote %d records to %s", len(records), self.path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_id(self, record_id: str) -> T | None:
        return self.find_by(lambda r: self.key(r) == record_id)

    def find_by(self, predicate: Callable[[T], bool]) -> T | None:
        """First record matching predicate, in file order."""
        return next((r for r in self.read_all() if predicate(r)), None)

    def filter(self, predicate: Callable[[T], bool]) -> list[T]:
        return [r for r in self.read_all() if predicate(r)]

    def count(self) -> int:
        """Not cached: reads the file every call."""
        return len(self.read_all())

    # ------------------------------------------------------------------
    # Mutations (read-modify-write, not atomic as a whole)
    # ------------------------------------------------------------------

    def save(self, record: T) -> T:
        """Append record. Uniqueness is the caller's job."""
        records = self.read_all()
        records.append(record)
        self.write_all(records)
        return record

    def update(self, record: T) -> T:
        """Replace the record with the same identifier in place.

        No existence check: an unknown identifier is appended.
        """
        record_id = self.key(record)
        records = self.read_all()
        for i, existing in enumerate(records):
            if self.key(existing) == record_id:
                records[i] = record
                break
        else:
            records.append(record)
        self.write_all(records)
        return record

    def delete_by_id(self, record_id: str) -> bool:
        """True if something was removed. Writes nothing when nothing matched."""
        records = self.read_all()
        kept = [r for r in records if self.key(r) != record_id]
        if len(kept) == len(records):
            return False
        self.write_all(kept)
        return True

    def delete_all(self) -> None:
        """Write an empty array. The file itself stays."""
        self.write_all([])
