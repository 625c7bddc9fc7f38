"""Advisory flock locks with bounded retry.

    with open(path, "rb") as f:
        with locked(f, LockMode.SHARED):
            data = f.read()

flock locks belong to the open file description: two separate open() calls
contend even inside one process, so threads behave like processes here.
Locks only order callers that use them; nothing stops a plain open().
"""

from __future__ import annotations

import contextlib
import enum
import fcntl
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from taskstore.errors import LockInterrupted, LockTimeout

if TYPE_CHECKING:
    import threading
    from collections.abc import Iterator

logger = logging.getLogger("taskstore.locks")

LOCK_TIMEOUT = 5.0          # seconds, measured from the first attempt
LOCK_RETRY_INTERVAL = 0.1   # seconds between attempts


class LockMode(enum.Enum):
    SHARED = fcntl.LOCK_SH
    EXCLUSIVE = fcntl.LOCK_EX

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class LockPolicy:
    """How long to keep trying, and how often."""

    timeout: float = LOCK_TIMEOUT
    retry_interval: float = LOCK_RETRY_INTERVAL
    interrupt: threading.Event | None = None   # set() to abort waiters


DEFAULT_POLICY = LockPolicy()


@dataclass
class LockToken:
    """A held lock. Release is idempotent; also usable as a context manager."""

    handle: IO[Any]
    mode: LockMode
    released: bool = False

    def release(self) -> None:
        release(self)

    def __enter__(self) -> LockToken:
        return self

    def __exit__(self, *exc: object) -> None:
        release(self)


def _handle_path(handle: IO[Any]) -> Path | None:
    name = getattr(handle, "name", None)
    return Path(name) if isinstance(name, str | Path) else None


def acquire(handle: IO[Any], mode: LockMode, policy: LockPolicy = DEFAULT_POLICY) -> LockToken:
    """Take a flock on handle, polling until policy.timeout runs out.

    Raises LockTimeout when contention outlasts the timeout and LockInterrupted
    as soon as policy.interrupt is set while waiting. Other OSErrors
    (closed or unsupported descriptor) propagate unchanged.
    """
    start = time.monotonic()
    attempts = 0
    while True:
        attempts += 1
        try:
            fcntl.flock(handle.fileno(), mode.value | fcntl.LOCK_NB)
        except BlockingIOError:
            pass
        else:
            if attempts > 1:
                logger.debug(
                    "%s lock on %s after %d attempts", mode.label, _handle_path(handle), attempts,
                )
            return LockToken(handle=handle, mode=mode)

        elapsed = time.monotonic() - start
        if elapsed >= policy.timeout:
            path = _handle_path(handle)
            logger.warning("gave up on %s lock for %s after %.2fs", mode.label, path, elapsed)
            raise LockTimeout(path=path, mode=mode.label, timeout=policy.timeout)

        pause = min(policy.retry_interval, policy.timeout - elapsed)
        if policy.interrupt is not None:
            if policy.interrupt.wait(pause):
                raise LockInterrupted(path=_handle_path(handle), mode=mode.label)
        else:
            time.sleep(pause)


def release(token: LockToken) -> None:
    """Drop the lock. Never raises: double release and closed handles are no-ops."""
    if token.released:
        return
    token.released = True
    if token.handle.closed:
        # Closing the descriptor already dropped the flock.
        return
    try:
        fcntl.flock(token.handle.fileno(), fcntl.LOCK_UN)
    except (OSError, ValueError):
        logger.warning("failed to release %s lock on %s", token.mode.label,
                       _handle_path(token.handle), exc_info=True)


@contextlib.contextmanager
def locked(handle: IO[Any], mode: LockMode, policy: LockPolicy = DEFAULT_POLICY) -> Iterator[LockToken]:
    token = acquire(handle, mode, policy)
    try:
        yield token
    finally:
        release(token)
