"""Error taxonomy for the file-backed store.

    StoreError
    ├── LockError
    │   ├── LockTimeout        contention outlasted the policy timeout (retryable)
    │   └── LockInterrupted    waiter was interrupted (not retryable)
    ├── MalformedData          file content is not a JSON array of valid records
    ├── StoreFailure
    │   ├── StoreReadFailure   anything that went wrong inside read_all
    │   └── StoreWriteFailure  anything that went wrong inside write_all
    └── ConfigError            bad taskstore.toml / env value
"""

from __future__ import annotations

from pathlib import Path


class StoreError(Exception):
    """Base class for everything the store raises on purpose."""

    retryable: bool = False


class LockError(StoreError):
    def __init__(self, message: str, *, path: Path | None = None, mode: str = "") -> None:
        super().__init__(message)
        self.path = path
        self.mode = mode


class LockTimeout(LockError):
    retryable = True

    def __init__(self, *, path: Path | None, mode: str, timeout: float) -> None:
        super().__init__(
            f"could not acquire {mode} lock on {path or '<handle>'} within {timeout:.1f}s",
            path=path,
            mode=mode,
        )
        self.timeout = timeout


class LockInterrupted(LockError):
    def __init__(self, *, path: Path | None, mode: str) -> None:
        super().__init__(
            f"interrupted while waiting for {mode} lock on {path or '<handle>'}",
            path=path,
            mode=mode,
        )


class MalformedData(StoreError):
    """Raised by the serializer; never repaired, never partially returned."""

    def __init__(self, message: str, *, index: int | None = None) -> None:
        if index is not None:
            message = f"record {index}: {message}"
        super().__init__(message)
        self.index = index


class StoreFailure(StoreError):
    operation = ""

    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"failed to {self.operation} {path}: {cause}")
        self.path = path
        self.cause = cause

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return bool(getattr(self.cause, "retryable", False))


class StoreReadFailure(StoreFailure):
    operation = "read"


class StoreWriteFailure(StoreFailure):
    operation = "write"


class ConfigError(StoreError):
    pass
