"""Initial database schema migration.

This migration creates all initial tables for the taskvault local vault:
- lists
- tasks
- labels
- task_labels (junction)
- subtasks
- schema_migrations (created by migration system)
"""

import sqlite3

from taskvault.adapters.sqlite import schema
from .runner import Migration


class InitialSchemaMigration(Migration):
    """Migration 001: Create initial database schema."""

    @property
    def version(self) -> int:
        return 1

    @property
    def name(self) -> str:
        return "initial_schema"

    def up(self, connection: sqlite3.Connection) -> None:
        """Create all initial tables."""
        for create_statement in schema.ALL_TABLES:
            connection.execute(create_statement)

        # Create all indexes
        for index_sql in schema.ALL_INDEXES:
            connection.execute(index_sql)

    def down(self, connection: sqlite3.Connection) -> None:
        """Drop every entity table, children first."""
        for table in ("subtasks", "task_labels", "labels", "tasks", "lists"):
            connection.execute(f"DROP TABLE IF EXISTS {table}")


# Export singleton instance
initial_migration = InitialSchemaMigration()
