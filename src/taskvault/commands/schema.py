"""Schema maintenance commands: 'migrate', 'rollback', 'history'."""

from datetime import datetime

import typer
from rich.table import Table

from taskvault.utils.ui.console import format_info, format_success, get_console

from .decorators import AppError, command_wrapper
from .utils import DB_OPTION, open_store

console = get_console()


@command_wrapper
async def migrate(db: str | None = DB_OPTION) -> None:
    """Apply pending migrations."""
    async with open_store(db, migrate=False) as store:
        applied = await store.db.migrate()
        version = await store.db.schema_version()

    if applied:
        format_success(f"Applied {applied} migration(s); schema at v{version}")
    else:
        format_info(f"Schema up to date at v{version}")


@command_wrapper
async def rollback(
    version: int = typer.Argument(..., help="Schema version to roll back to"),
    db: str | None = DB_OPTION,
) -> None:
    """Roll the schema back to VERSION."""
    if version < 0:
        raise AppError("VERSION must be >= 0", exit_code=2)

    async with open_store(db, migrate=False) as store:
        reverted = await store.db.rollback_to(version)

    if reverted:
        format_success(f"Rolled back {reverted} migration(s); schema at v{version}")
    else:
        format_info(f"Nothing to roll back (already at or below v{version})")


@command_wrapper
async def history(db: str | None = DB_OPTION) -> None:
    """List applied migrations."""
    async with open_store(db, migrate=False) as store:
        rows = await store.db.get_migration_history()

    table = Table(title="Applied migrations")
    table.add_column("Version", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Applied at")
    for row in rows:
        applied_at = datetime.fromtimestamp(row["applied_at"] / 1000).isoformat(
            timespec="seconds"
        )
        table.add_row(str(row["version"]), row["name"], applied_at)
    console.print(table)
