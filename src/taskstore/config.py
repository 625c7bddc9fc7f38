"""StoreConfig: where the collection files live and how long to wait for locks.

Default layout (relative to the project root, the directory holding
taskstore.toml):

    taskstore.toml        # project config
    .env                  # optional overrides (TASKSTORE_*)
    data/
        tasks.json
        statuses.json

taskstore.toml example:

    [storage]
    tasks_file = "data/tasks.json"
    statuses_file = "data/statuses.json"

    [locking]
    timeout = 5.0          # seconds before LockTimeout
    retry_interval = 0.1   # seconds between lock attempts

Precedence: process environment > .env > taskstore.toml > defaults.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from taskstore.errors import ConfigError
from taskstore.locks import LOCK_RETRY_INTERVAL, LOCK_TIMEOUT, LockPolicy
from taskstore.repositories import StatusRepository, TaskRepository

_CONFIG_FILENAME = "taskstore.toml"
_DEFAULT_TASKS_FILE = "data/tasks.json"
_DEFAULT_STATUSES_FILE = "data/statuses.json"

_ENV_TASKS_FILE = "TASKSTORE_TASKS_FILE"
_ENV_STATUSES_FILE = "TASKSTORE_STATUSES_FILE"
_ENV_LOCK_TIMEOUT = "TASKSTORE_LOCK_TIMEOUT"
_ENV_LOCK_RETRY = "TASKSTORE_LOCK_RETRY_INTERVAL"


@dataclass
class StorageConfig:
    tasks_file: Path = field(default_factory=lambda: Path(_DEFAULT_TASKS_FILE))
    statuses_file: Path = field(default_factory=lambda: Path(_DEFAULT_STATUSES_FILE))


@dataclass
class LockingConfig:
    timeout: float = LOCK_TIMEOUT
    retry_interval: float = LOCK_RETRY_INTERVAL


@dataclass
class StoreConfig:
    """Resolved configuration for one project."""

    root: Path
    storage: StorageConfig = field(default_factory=StorageConfig)
    locking: LockingConfig = field(default_factory=LockingConfig)

    @property
    def config_path(self) -> Path:
        return self.root / _CONFIG_FILENAME

    def lock_policy(self) -> LockPolicy:
        return LockPolicy(timeout=self.locking.timeout, retry_interval=self.locking.retry_interval)

    def task_repository(self) -> TaskRepository:
        return TaskRepository.for_path(self.storage.tasks_file, self.lock_policy())

    def status_repository(self) -> StatusRepository:
        return StatusRepository.for_path(self.storage.statuses_file, self.lock_policy())

    def pretty_lines(self) -> list[str]:
        return [
            f"root           : {self.root}",
            f"tasks_file     : {self.storage.tasks_file}",
            f"statuses_file  : {self.storage.statuses_file}",
            f"lock timeout   : {self.locking.timeout}s",
            f"lock retry     : {self.locking.retry_interval}s",
        ]


def _load_env(root: Path) -> dict[str, str]:
    """Parse a simple KEY=VALUE .env file."""
    env_file = root / ".env"
    if not env_file.exists():
        return {}
    env: dict[str, str] = {}
    for line in env_file.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            k, _, v = line.partition("=")
            env[k.strip()] = v.strip().strip('"').strip("'")
    return env


def _seconds(name: str, value: Any) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        msg = f"{name} must be a number of seconds, got {value!r}"
        raise ConfigError(msg) from exc
    if seconds <= 0:
        msg = f"{name} must be positive, got {seconds}"
        raise ConfigError(msg)
    return seconds


def load_config(root: Path | str | None = None) -> StoreConfig:
    """Load taskstore.toml from root (or search upward from cwd if root is None)."""
    root_path = _find_root(Path(root) if root else Path.cwd())
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            msg = f"{config_path}: {exc}"
            raise ConfigError(msg) from exc

    # Process environment wins over .env
    env = {**_load_env(root_path), **os.environ}

    storage_section = raw.get("storage", {})
    locking_section = raw.get("locking", {})

    tasks_rel = env.get(_ENV_TASKS_FILE) or storage_section.get("tasks_file", _DEFAULT_TASKS_FILE)
    statuses_rel = env.get(_ENV_STATUSES_FILE) or storage_section.get("statuses_file", _DEFAULT_STATUSES_FILE)

    timeout = env.get(_ENV_LOCK_TIMEOUT) or locking_section.get("timeout", LOCK_TIMEOUT)
    retry = env.get(_ENV_LOCK_RETRY) or locking_section.get("retry_interval", LOCK_RETRY_INTERVAL)

    return StoreConfig(
        root=root_path,
        storage=StorageConfig(
            tasks_file=root_path / Path(tasks_rel).expanduser(),
            statuses_file=root_path / Path(statuses_rel).expanduser(),
        ),
        locking=LockingConfig(
            timeout=_seconds("locking.timeout", timeout),
            retry_interval=_seconds("locking.retry_interval", retry),
        ),
    )


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for taskstore.toml."""
    start = start.resolve()
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path) -> Path:
    """Write a default taskstore.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"{_CONFIG_FILENAME} already exists at {config_path}"
        raise FileExistsError(msg)

    content = f"""\
[storage]
tasks_file = "{_DEFAULT_TASKS_FILE}"
statuses_file = "{_DEFAULT_STATUSES_FILE}"
# or set {_ENV_TASKS_FILE} / {_ENV_STATUSES_FILE} in .env

# [locking]
# timeout = {LOCK_TIMEOUT}          # seconds before giving up on a lock
# retry_interval = {LOCK_RETRY_INTERVAL}   # seconds between attempts
"""
    root.mkdir(parents=True, exist_ok=True)
    config_path.write_text(content)
    return config_path
