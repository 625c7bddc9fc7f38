"""taskstore.toml / .env / environment resolution."""

from __future__ import annotations

import pytest

from taskstore.config import init_config, load_config
from taskstore.errors import ConfigError


def test_defaults_without_config_file(tmp_path):
    cfg = load_config(tmp_path)
    assert cfg.root == tmp_path.resolve()
    assert cfg.storage.tasks_file == tmp_path.resolve() / "data" / "tasks.json"
    assert cfg.storage.statuses_file == tmp_path.resolve() / "data" / "statuses.json"
    assert cfg.locking.timeout == 5.0
    assert cfg.locking.retry_interval == 0.1
    policy = cfg.lock_policy()
    assert (policy.timeout, policy.retry_interval) == (5.0, 0.1)


def test_toml_values(tmp_path):
    (tmp_path / "taskstore.toml").write_text(
        '[storage]\ntasks_file = "store/t.json"\nstatuses_file = "/abs/s.json"\n'
        "[locking]\ntimeout = 1.5\nretry_interval = 0.05\n"
    )
    cfg = load_config(tmp_path)
    assert cfg.storage.tasks_file == tmp_path.resolve() / "store" / "t.json"
    assert str(cfg.storage.statuses_file) == "/abs/s.json"
    assert cfg.locking.timeout == 1.5
    assert cfg.locking.retry_interval == 0.05


def test_env_file_and_environment_override(tmp_path, monkeypatch):
    (tmp_path / "taskstore.toml").write_text('[storage]\ntasks_file = "toml.json"\n')
    (tmp_path / ".env").write_text(
        "# overrides\nTASKSTORE_TASKS_FILE=dotenv.json\nTASKSTORE_LOCK_TIMEOUT='2'\n"
    )
    cfg = load_config(tmp_path)
    assert cfg.storage.tasks_file.name == "dotenv.json"
    assert cfg.locking.timeout == 2.0

    monkeypatch.setenv("TASKSTORE_TASKS_FILE", "environ.json")
    cfg = load_config(tmp_path)
    assert cfg.storage.tasks_file.name == "environ.json"


def test_root_found_by_walking_up(tmp_path, monkeypatch):
    init_config(tmp_path)
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)
    assert load_config().root == tmp_path.resolve()


@pytest.mark.parametrize("value", ["soon", "0", "-1"])
def test_invalid_timeout(tmp_path, monkeypatch, value):
    monkeypatch.setenv("TASKSTORE_LOCK_TIMEOUT", value)
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_invalid_toml(tmp_path):
    (tmp_path / "taskstore.toml").write_text("[storage\n")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_init_config_refuses_to_overwrite(tmp_path):
    path = init_config(tmp_path)
    assert path.exists()
    cfg = load_config(tmp_path)
    assert cfg.storage.tasks_file == tmp_path.resolve() / "data" / "tasks.json"
    with pytest.raises(FileExistsError):
        init_config(tmp_path)


def test_repositories_use_configured_paths(tmp_path):
    cfg = load_config(tmp_path)
    assert cfg.task_repository().store.path == cfg.storage.tasks_file
    assert cfg.status_repository().store.path == cfg.storage.statuses_file
    assert cfg.task_repository().store.policy == cfg.lock_policy()
