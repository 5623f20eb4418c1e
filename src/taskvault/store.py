"""TaskStore - one vault database together with its repositories.

Usage::

    store = TaskStore("vault.db")
    await store.open()
    work = await store.lists.create(TaskListCreate(name="Work"))
    async with store.transaction():
        task = await store.tasks.create(TaskCreate(title="Report", list_id=work.id))
        await store.task_labels.add_to_task(task.id, label.id)
    await store.close()

The store is also an async context manager that opens and closes itself.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from taskvault.adapters.sqlite import (
    Database,
    SqliteLabelRepository,
    SqliteListRepository,
    SqliteSubtaskRepository,
    SqliteTaskLabelRepository,
    SqliteTaskRepository,
)
from taskvault.adapters.sqlite.base_repository import SqliteEntityRepository
from taskvault.adapters.sqlite.migrations import Migration
from taskvault.models import DatabaseStats, StoreConfig


class TaskStore:
    """Caller-owned handle on a vault and its repositories."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        config: StoreConfig | None = None,
        migrations: list[Migration] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.db = Database(db_path, config=config, migrations=migrations, logger=logger)
        self.lists = SqliteListRepository(self.db)
        self.tasks = SqliteTaskRepository(self.db)
        self.labels = SqliteLabelRepository(self.db)
        self.subtasks = SqliteSubtaskRepository(self.db)
        self.task_labels = SqliteTaskLabelRepository(self.db)

    @property
    def repositories(self) -> dict[str, SqliteEntityRepository]:
        """Entity repositories keyed by table name."""
        return {
            "lists": self.lists,
            "tasks": self.tasks,
            "labels": self.labels,
            "subtasks": self.subtasks,
        }

    async def open(self, migrate: bool = True) -> TaskStore:
        await self.db.init(migrate=migrate)
        return self

    async def close(self) -> None:
        await self.db.close()

    async def __aenter__(self) -> TaskStore:
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[TaskStore]:
        """Run several repository calls atomically."""
        async with self.db.transaction():
            yield self

    async def get_stats(self) -> DatabaseStats:
        return await self.db.get_stats()

    async def row_counts(self) -> dict[str, dict[str, int]]:
        """Live, total and dirty row counts per entity table present in the vault."""
        present = set((await self.get_stats()).tables)
        counts = {}
        for table, repo in self.repositories.items():
            if table not in present:
                continue
            counts[table] = {
                "live": await repo.count(),
                "total": await repo.count(include_deleted=True),
                "dirty": len(await repo.get_dirty()),
            }
        return counts
