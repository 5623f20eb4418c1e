"""Commands 'init' and 'info' of taskvault."""

import json

import typer
from rich.table import Table

from taskvault.utils.ui.console import format_success, get_console

from .decorators import command_wrapper
from .utils import DB_OPTION, open_store

console = get_console()


@command_wrapper
async def init_vault(db: str | None = DB_OPTION) -> None:
    """Create the vault (or bring it up to date) and print its location."""
    async with open_store(db) as store:
        stats = await store.get_stats()
        format_success(f"Vault ready at schema v{stats.schema_version}")
        console.print(str(store.db.db_path), highlight=False)


@command_wrapper
async def info(
    db: str | None = DB_OPTION,
    json_opt: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show tables, size, schema version and row counts."""
    async with open_store(db, migrate=False) as store:
        stats = await store.get_stats()
        counts = await store.row_counts()

    if json_opt:
        payload = {**stats.model_dump(), "path": str(store.db.db_path), "rows": counts}
        typer.echo(json.dumps(payload, indent=2))
        return

    console.print(f"[bold]Vault:[/bold] {store.db.db_path}", highlight=False)
    console.print(f"[bold]Schema version:[/bold] {stats.schema_version}")
    console.print(f"[bold]Size:[/bold] {stats.db_size} bytes")
    console.print(f"[bold]Tables:[/bold] {', '.join(stats.tables)}")

    table = Table(title="Rows")
    table.add_column("Entity", style="cyan")
    table.add_column("Live", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Dirty", justify="right", style="yellow")
    for entity, row in counts.items():
        table.add_row(entity, str(row["live"]), str(row["total"]), str(row["dirty"]))
    console.print(table)
