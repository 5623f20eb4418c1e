"""Migration 003: indexes for the sync queue and manual ordering."""

from __future__ import annotations

import sqlite3

from taskvault.adapters.sqlite.migrations.runner import Migration

SYNC_INDEXES = {
    "idx_lists_dirty": "lists(dirty, updated_at)",
    "idx_lists_created": "lists(created_at)",
    "idx_labels_dirty": "labels(dirty, updated_at)",
    "idx_subtasks_dirty": "subtasks(dirty, updated_at)",
    "idx_subtasks_task_order": "subtasks(task_id, sort_order)",
    "idx_tasks_list_order": "tasks(list_id, sort_order)",
}


class SyncIndexesMigration(Migration):
    @property
    def version(self) -> int:
        return 3

    @property
    def name(self) -> str:
        return "sync_and_order_indexes"

    def up(self, connection: sqlite3.Connection) -> None:
        for index_name, target in SYNC_INDEXES.items():
            connection.execute(f"CREATE INDEX IF NOT EXISTS {index_name} ON {target}")

    def down(self, connection: sqlite3.Connection) -> None:
        for index_name in SYNC_INDEXES:
            connection.execute(f"DROP INDEX IF EXISTS {index_name}")


sync_indexes_migration = SyncIndexesMigration()
