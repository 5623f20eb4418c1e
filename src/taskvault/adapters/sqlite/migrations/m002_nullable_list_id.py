"""Migration 002: allow unfiled tasks.

Rebuilds ``tasks`` with a nullable ``list_id`` whose foreign key is
``ON DELETE SET NULL``: hard-deleting a list leaves its tasks unfiled instead
of destroying them. SQLite cannot alter a column constraint in place, so the
table is recreated and the data copied.
"""

from __future__ import annotations

import sqlite3

from taskvault.adapters.sqlite import schema
from taskvault.adapters.sqlite.migrations.runner import Migration

_TASK_COLUMNS = """
    id, list_id, title, description, status, priority, start_date, due_date,
    completed_at, created_at, updated_at, deleted_at, version, dirty, sort_order
"""

CREATE_TASKS_TABLE_V2 = """
CREATE TABLE tasks_v2 (
    id TEXT PRIMARY KEY,
    list_id TEXT NULL,
    title TEXT NOT NULL,
    description TEXT NULL,
    status TEXT NOT NULL CHECK(status IN ('todo','in_progress','blocked','done')),
    priority INTEGER NOT NULL CHECK(priority BETWEEN 0 AND 3),
    start_date INTEGER NULL,
    due_date INTEGER NULL,
    completed_at INTEGER NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    deleted_at INTEGER NULL,
    version INTEGER NOT NULL DEFAULT 0,
    dirty INTEGER NOT NULL DEFAULT 1,
    sort_order REAL NULL,
    FOREIGN KEY(list_id) REFERENCES lists(id) ON DELETE SET NULL
)
"""

CREATE_TASKS_TABLE_V1 = schema.CREATE_TASKS_TABLE.replace(
    "CREATE TABLE IF NOT EXISTS tasks (", "CREATE TABLE tasks_v1 ("
)


def _rebuild_tasks(connection: sqlite3.Connection, create_sql: str, staging: str, where: str = "") -> None:
    cursor = connection.cursor()
    # A previous failed attempt may have left the staging table behind
    cursor.execute(f"DROP TABLE IF EXISTS {staging}")
    cursor.execute(create_sql)
    cursor.execute(
        f"INSERT INTO {staging} ({_TASK_COLUMNS}) SELECT {_TASK_COLUMNS} FROM tasks {where}"
    )
    cursor.execute("DROP TABLE tasks")
    cursor.execute(f"ALTER TABLE {staging} RENAME TO tasks")
    for index_sql in schema.CREATE_TASK_INDEXES:
        cursor.execute(index_sql)


class NullableListIdMigration(Migration):
    """Make tasks.list_id nullable."""

    @property
    def version(self) -> int:
        """Migration version."""
        return 2

    @property
    def name(self) -> str:
        """Migration name."""
        return "make_list_id_nullable"

    def up(self, connection: sqlite3.Connection) -> None:
        _rebuild_tasks(connection, CREATE_TASKS_TABLE_V2, "tasks_v2")

    def down(self, connection: sqlite3.Connection) -> None:
        """Restore the mandatory list_id.

        Unfiled tasks cannot be represented in v1 and are dropped together
        with their subtasks and label links.
        """
        _rebuild_tasks(
            connection, CREATE_TASKS_TABLE_V1, "tasks_v1", "WHERE list_id IS NOT NULL"
        )
        connection.execute("DELETE FROM subtasks WHERE task_id NOT IN (SELECT id FROM tasks)")
        connection.execute("DELETE FROM task_labels WHERE task_id NOT IN (SELECT id FROM tasks)")


nullable_list_id_migration = NullableListIdMigration()
