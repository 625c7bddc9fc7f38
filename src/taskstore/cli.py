"""taskstore CLI: tasks and statuses kept in locked JSON files.

Commands:
    taskstore init                         create taskstore.toml
    taskstore config                       show resolved configuration
    taskstore tasks list|add|delete|clear|count|reload
    taskstore statuses list|add|update|delete
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import click

from taskstore.codec import format_timestamp
from taskstore.config import StoreConfig, init_config, load_config
from taskstore.errors import ConfigError, StoreFailure
from taskstore.models import Status, Task

if TYPE_CHECKING:
    from collections.abc import Callable

    from taskstore.repositories import StatusRepository

TEXT_MAX = 500
LABEL_MAX = 50
_HEX_COLOR = re.compile(r"#[0-9A-Fa-f]{6}")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _cfg(ctx: click.Context) -> StoreConfig:
    root = ctx.find_root().params.get("root")
    try:
        return load_config(root)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _fail(exc: StoreFailure) -> NoReturn:
    msg = str(exc)
    if exc.retryable:
        msg += " (the file is busy, retry later)"
    raise click.ClickException(msg) from exc


def _task_line(task: Task) -> str:
    created = format_timestamp(task.created) if task.created else "-"
    return f"{task.id}  {created}  [{task.status_id}]  {task.text}"


def _status_line(status: Status) -> str:
    return f"{status.id}  {status.color}  {status.label}"


def _not_blank(limit: int) -> Callable[[click.Context, click.Parameter, str], str]:
    def check(ctx: click.Context, param: click.Parameter, value: str) -> str:
        if not value.strip():
            raise click.BadParameter("must not be blank")
        if len(value) > limit:
            raise click.BadParameter(f"must be at most {limit} characters")
        return value

    return check


def _hex_color(ctx: click.Context, param: click.Parameter, value: str) -> str:
    if not _HEX_COLOR.fullmatch(value):
        raise click.BadParameter("must be a hex color like #4a90e2")
    return value


def _check_label_free(repo: StatusRepository, label: str, *, own_id: str = "") -> None:
    """Labels are unique case-insensitively ("Open" clashes with "open")."""
    existing = repo.find_by_label(label)
    if existing is not None and existing.id != own_id:
        raise click.ClickException(f"Status with label '{label}' already exists ({existing.id})")


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="taskstore")
@click.option("--root", default=None, help="Project root (default: search upward for taskstore.toml)")
@click.option("-v", "--verbose", is_flag=True, help="Log store activity to stderr")
def cli(root: str | None, verbose: bool) -> None:
    """Tasks and statuses in locked JSON files."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(message)s")


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create taskstore.toml in the project root."""
    root = Path(ctx.find_root().params.get("root") or ".").resolve()
    try:
        config_path = init_config(root)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("taskstore.toml already exists, skipping init")
    cfg = _cfg(ctx)
    click.echo(f"Tasks file    : {cfg.storage.tasks_file}")
    click.echo(f"Statuses file : {cfg.storage.statuses_file}")


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Print the resolved configuration."""
    click.echo("\n".join(_cfg(ctx).pretty_lines()))


# ---------------------------------------------------------------------------
# taskstore tasks
# ---------------------------------------------------------------------------


@cli.group()
def tasks() -> None:
    """Manage tasks."""


@tasks.command("list")
@click.pass_context
def tasks_list(ctx: click.Context) -> None:
    """List tasks in file order."""
    try:
        found = _cfg(ctx).task_repository().find_all()
    except StoreFailure as exc:
        _fail(exc)
    if not found:
        click.echo("No tasks.")
        return
    for task in found:
        click.echo(_task_line(task))


@tasks.command("add")
@click.argument("text", callback=_not_blank(TEXT_MAX))
@click.option("--status", "status_id", required=True, help="Status ID")
@click.pass_context
def tasks_add(ctx: click.Context, text: str, status_id: str) -> None:
    """Add a task."""
    try:
        task = _cfg(ctx).task_repository().save(Task(text=text, status_id=status_id))
    except StoreFailure as exc:
        _fail(exc)
    click.echo(_task_line(task))


@tasks.command("delete")
@click.argument("task_id")
@click.pass_context
def tasks_delete(ctx: click.Context, task_id: str) -> None:
    """Delete one task by ID."""
    try:
        deleted = _cfg(ctx).task_repository().delete_by_id(task_id)
    except StoreFailure as exc:
        _fail(exc)
    if not deleted:
        raise click.ClickException(f"Task not found: {task_id}")
    click.echo(f"Deleted {task_id}")


@tasks.command("clear")
@click.confirmation_option(prompt="Delete all tasks?")
@click.pass_context
def tasks_clear(ctx: click.Context) -> None:
    """Delete every task (the file is kept, holding [])."""
    try:
        _cfg(ctx).task_repository().delete_all()
    except StoreFailure as exc:
        _fail(exc)
    click.echo("Cleared all tasks")


@tasks.command("count")
@click.pass_context
def tasks_count(ctx: click.Context) -> None:
    """Print the number of tasks."""
    try:
        n = _cfg(ctx).task_repository().count()
    except StoreFailure as exc:
        _fail(exc)
    click.echo(str(n))


@tasks.command("reload")
@click.pass_context
def tasks_reload(ctx: click.Context) -> None:
    """Re-read the tasks file (picks up edits made by other processes)."""
    try:
        found = _cfg(ctx).task_repository().find_all()
    except StoreFailure as exc:
        _fail(exc)
    click.echo(f"Reloaded {len(found)} tasks from file")
    for task in found:
        click.echo(_task_line(task))


# ---------------------------------------------------------------------------
# taskstore statuses
# ---------------------------------------------------------------------------


@cli.group()
def statuses() -> None:
    """Manage statuses."""


@statuses.command("list")
@click.pass_context
def statuses_list(ctx: click.Context) -> None:
    """List statuses in file order."""
    try:
        found = _cfg(ctx).status_repository().find_all()
    except StoreFailure as exc:
        _fail(exc)
    if not found:
        click.echo("No statuses.")
        return
    for status in found:
        click.echo(_status_line(status))


@statuses.command("add")
@click.argument("label", callback=_not_blank(LABEL_MAX))
@click.argument("color", callback=_hex_color)
@click.pass_context
def statuses_add(ctx: click.Context, label: str, color: str) -> None:
    """Add a status. Labels must be unique (case-insensitive)."""
    repo = _cfg(ctx).status_repository()
    try:
        _check_label_free(repo, label)
        status = repo.save(Status(label=label, color=color))
    except StoreFailure as exc:
        _fail(exc)
    click.echo(_status_line(status))


@statuses.command("update")
@click.argument("status_id")
@click.argument("label", callback=_not_blank(LABEL_MAX))
@click.argument("color", callback=_hex_color)
@click.pass_context
def statuses_update(ctx: click.Context, status_id: str, label: str, color: str) -> None:
    """Change a status's label and color."""
    repo = _cfg(ctx).status_repository()
    try:
        if repo.find_by_id(status_id) is None:
            raise click.ClickException(f"Status not found: {status_id}")
        _check_label_free(repo, label, own_id=status_id)
        status = repo.update(Status(id=status_id, label=label, color=color))
    except StoreFailure as exc:
        _fail(exc)
    click.echo(_status_line(status))


@statuses.command("delete")
@click.argument("status_id")
@click.pass_context
def statuses_delete(ctx: click.Context, status_id: str) -> None:
    """Delete one status by ID."""
    try:
        deleted = _cfg(ctx).status_repository().delete_by_id(status_id)
    except StoreFailure as exc:
        _fail(exc)
    if not deleted:
        raise click.ClickException(f"Status not found: {status_id}")
    click.echo(f"Deleted {status_id}")
