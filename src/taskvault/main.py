"""Main entry point for the taskvault CLI."""

import typer

from taskvault import __version__
from taskvault.commands import config, schema, subtasks, sync, vault
from taskvault.utils.ui.console import get_console

app = typer.Typer(
    name="taskvault",
    help="Maintenance tool for taskvault local databases",
    no_args_is_help=True,
)

console = get_console(highlight=False)

# Vault lifecycle
app.command("init")(vault.init_vault)
app.command("info")(vault.info)

# Schema
app.command("migrate")(schema.migrate)
app.command("rollback")(schema.rollback)
app.command("history")(schema.history)

# Data
app.command("dirty")(sync.dirty)
app.command("rebalance")(subtasks.rebalance)

app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(__version__)


if __name__ == "__main__":
    app()
