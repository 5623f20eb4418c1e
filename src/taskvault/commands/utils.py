"""Shared helpers for vault commands."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import typer

from taskvault.services.config_service import get_config_service
from taskvault.store import TaskStore
from taskvault.utils.logger import set_level

DB_OPTION = typer.Option(None, "--db", help="Vault file (defaults to the configured path)")

ENTITY_TABLES = ("lists", "tasks", "labels", "subtasks")


@asynccontextmanager
async def open_store(db_path: str | None, migrate: bool = True) -> AsyncIterator[TaskStore]:
    """Open the vault named by ``--db`` or the configuration, closing it afterwards.

    ``migrate=False`` leaves the schema as found (maintenance commands).
    """
    config = get_config_service().store
    set_level(config.log_level)

    store = TaskStore(db_path, config=config)
    await store.open(migrate=migrate)
    try:
        yield store
    finally:
        await store.close()
