"""Command 'dirty': the pending upload queue."""

from datetime import datetime

import typer
from rich.table import Table

from taskvault.utils.ui.console import format_info, get_console

from .decorators import AppError, command_wrapper
from .utils import DB_OPTION, ENTITY_TABLES, open_store

console = get_console()


@command_wrapper
async def dirty(
    db: str | None = DB_OPTION,
    entity: str | None = typer.Option(
        None, "--entity", "-e", help="Only this entity: lists, tasks, labels or subtasks"
    ),
) -> None:
    """List rows with local changes not yet synchronized."""
    if entity is not None and entity not in ENTITY_TABLES:
        raise AppError(
            f"Unknown entity '{entity}'. Choose from: {', '.join(ENTITY_TABLES)}",
            exit_code=2,
        )

    tables = [entity] if entity else list(ENTITY_TABLES)
    async with open_store(db) as store:
        pending = {table: await store.repositories[table].get_dirty() for table in tables}

    if not any(pending.values()):
        format_info("Nothing to sync")
        return

    table = Table(title="Dirty rows")
    table.add_column("Entity", style="cyan")
    table.add_column("ID", no_wrap=True)
    table.add_column("Version", justify="right")
    table.add_column("Updated")
    table.add_column("Deleted", style="red")
    for name, rows in pending.items():
        for row in rows:
            updated = datetime.fromtimestamp(row.updated_at / 1000).isoformat(
                timespec="seconds"
            )
            table.add_row(
                name, row.id, str(row.version), updated, "yes" if row.is_deleted else ""
            )
    console.print(table)
