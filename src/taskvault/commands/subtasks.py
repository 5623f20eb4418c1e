"""Command 'rebalance' of taskvault."""

import typer

from taskvault.utils.ui.console import format_success

from .decorators import command_wrapper
from .utils import DB_OPTION, open_store


@command_wrapper
async def rebalance(
    task_id: str = typer.Argument(..., help="Task whose subtasks are renumbered"),
    db: str | None = DB_OPTION,
) -> None:
    """Renumber a task's subtasks to evenly spaced keys."""
    async with open_store(db) as store:
        changed = await store.subtasks.rebalance(task_id)
    format_success(f"Renumbered {changed} subtask(s)")
