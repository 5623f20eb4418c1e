"""Configuration management commands."""

import json

import typer

from taskvault.services.config_service import get_config_service
from taskvault.utils.ui.console import format_success, get_console

from .decorators import command_wrapper

app = typer.Typer(help="Configuration management")
console = get_console()

_NULLS = {"none", "null"}


@app.command("show")
@command_wrapper
def show_config() -> None:
    """Show the store configuration."""
    service = get_config_service()
    console.print(f"[bold]Config file:[/bold] {service.config_path}", highlight=False)
    typer.echo(json.dumps(service.store.model_dump(), indent=2))


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Setting name, e.g. operation_timeout"),
    value: str = typer.Argument(..., help="New value ('none' clears optional settings)"),
) -> None:
    """Change one store setting."""
    parsed = None if value.lower() in _NULLS else value
    get_config_service().set(key, parsed)
    format_success(f"{key} = {parsed}")


@app.command("reset")
@command_wrapper
def reset_config() -> None:
    """Restore default settings."""
    get_config_service().reset_config()
    format_success("Configuration reset to defaults")
