"""Migration framework for SQLite database schema evolution.

This module provides a simple migration system with:
- Sequential version-based migrations
- One transaction per version step (schema change + bookkeeping row)
- Reverse steps for rolling back to an earlier version
- Automatic execution on startup

The runner expects a connection in autocommit mode (``isolation_level=None``)
so that it controls BEGIN/COMMIT itself. Migration bodies must use
``execute`` only: ``executescript`` commits implicitly and would break the
per-step atomicity.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from taskvault.adapters.sqlite.schema import CREATE_SCHEMA_MIGRATIONS_TABLE
from taskvault.adapters.sqlite.utils import now_ms
from taskvault.errors import MigrationError
from taskvault.utils.logger import get_logger


class Migration(ABC):
    """Base class for database migrations."""

    @property
    @abstractmethod
    def version(self) -> int:
        """Migration version number (sequential)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier of the migration."""

    @abstractmethod
    def up(self, connection: sqlite3.Connection) -> None:
        """Execute forward migration.

        Args:
            connection: Database connection
        """

    @abstractmethod
    def down(self, connection: sqlite3.Connection) -> None:
        """Reverse the forward migration.

        Args:
            connection: Database connection
        """


class MigrationRunner:
    """Manages and executes database migrations."""

    def __init__(
        self, connection: sqlite3.Connection, logger: logging.Logger | None = None
    ):
        """Initialize migration runner.

        Args:
            connection: Database connection (autocommit mode)
            logger: Optional logger, defaults to the application logger
        """
        self.connection = connection
        self.logger = logger or get_logger()
        self._ensure_version_table()

    def _ensure_version_table(self) -> None:
        """Create schema_migrations table if it doesn't exist."""
        self.connection.execute(CREATE_SCHEMA_MIGRATIONS_TABLE)

    def get_current_version(self) -> int:
        """Get current database schema version.

        Returns:
            Current version number (0 if no migrations applied)
        """
        cursor = self.connection.execute("SELECT MAX(version) FROM schema_migrations")
        result = cursor.fetchone()[0]
        return result if result is not None else 0

    @contextmanager
    def _foreign_keys_suspended(self) -> Iterator[None]:
        """Disable FK enforcement while tables are rebuilt.

        ``PRAGMA foreign_keys`` is a no-op inside a transaction, so this wraps
        whole steps. Integrity is re-checked per step with foreign_key_check.
        """
        enabled = self.connection.execute("PRAGMA foreign_keys").fetchone()[0]
        if enabled:
            self.connection.execute("PRAGMA foreign_keys = OFF")
        try:
            yield
        finally:
            if enabled:
                self.connection.execute("PRAGMA foreign_keys = ON")

    def _rollback(self, version: int, action: str) -> None:
        try:
            self.connection.execute("ROLLBACK")
        except sqlite3.Error as rollback_error:
            self.logger.error(
                "rollback failed while %s v%s: %s", action, version, rollback_error
            )

    def _run_step(
        self,
        migration: Migration,
        action: str,
        body: Callable[[sqlite3.Connection], None],
        bookkeeping: tuple[str, tuple],
    ) -> None:
        """Run ``body`` and its bookkeeping statement atomically."""
        self.connection.execute("BEGIN IMMEDIATE")
        try:
            body(self.connection)
            self.connection.execute(*bookkeeping)

            violations = self.connection.execute("PRAGMA foreign_key_check").fetchall()
            if violations:
                tables = sorted({row[0] for row in violations})
                raise MigrationError(
                    migration.version,
                    f"foreign key violations in {', '.join(tables)}",
                )

            self.connection.execute("COMMIT")
        except Exception as e:
            self.logger.error("%s v%s failed: %s", action, migration.version, e)
            self._rollback(migration.version, action)
            verb = "Migration" if action == "migrating" else "Rollback"
            raise MigrationError(
                migration.version, f"{verb} {migration.version} failed: {e}"
            ) from e

    def run_migration(self, migration: Migration) -> None:
        """Run a single migration.

        Args:
            migration: Migration to execute

        Raises:
            ValueError: If migration version is not greater than current version
            MigrationError: If the migration body fails (nothing is recorded)
        """
        current_version = self.get_current_version()

        if migration.version <= current_version:
            raise ValueError(
                f"Migration version {migration.version} is not greater than "
                f"current version {current_version}"
            )

        self.logger.info("applying migration v%s: %s", migration.version, migration.name)
        with self._foreign_keys_suspended():
            self._run_step(
                migration,
                "migrating",
                migration.up,
                (
                    "INSERT INTO schema_migrations (version, name, applied_at) VALUES (?, ?, ?)",
                    (migration.version, migration.name, now_ms()),
                ),
            )
        self.logger.info("migration v%s applied", migration.version)

    def run_migrations(self, migrations: list[Migration]) -> int:
        """Run all pending migrations.

        Args:
            migrations: List of migrations to potentially run

        Returns:
            Number of migrations applied
        """
        current_version = self.get_current_version()

        # Sort migrations by version
        sorted_migrations = sorted(migrations, key=lambda m: m.version)

        # Filter to only pending migrations
        pending = [m for m in sorted_migrations if m.version > current_version]

        if not pending:
            self.logger.debug("schema up to date at v%s", current_version)

        for migration in pending:
            self.run_migration(migration)

        return len(pending)

    def rollback_to(self, target_version: int, migrations: list[Migration]) -> int:
        """Reverse applied migrations down to ``target_version``.

        Each step runs ``down`` and removes its bookkeeping row in one
        transaction, newest version first.

        Args:
            target_version: Version to end at (0 removes every migration)
            migrations: Known migrations; must cover every version to reverse

        Returns:
            Number of migrations reversed
        """
        if target_version < 0:
            raise ValueError("Target version must be >= 0")

        current_version = self.get_current_version()
        if target_version >= current_version:
            self.logger.info(
                "rollback to v%s not needed (current v%s)", target_version, current_version
            )
            return 0

        by_version = {m.version: m for m in migrations}
        applied = [
            row[0]
            for row in self.connection.execute(
                "SELECT version FROM schema_migrations WHERE version > ? ORDER BY version DESC",
                (target_version,),
            ).fetchall()
        ]

        missing = [v for v in applied if v not in by_version]
        if missing:
            raise MigrationError(
                missing[0], f"No migration available to reverse v{missing[0]}"
            )

        for version in applied:
            migration = by_version[version]
            self.logger.info("reverting migration v%s: %s", version, migration.name)
            with self._foreign_keys_suspended():
                self._run_step(
                    migration,
                    "reverting",
                    migration.down,
                    ("DELETE FROM schema_migrations WHERE version = ?", (version,)),
                )

        return len(applied)

    def get_migration_history(self) -> list[dict]:
        """Get history of applied migrations.

        Returns:
            List of migration records with version, name, and applied_at
        """
        cursor = self.connection.execute("""
            SELECT version, name, applied_at
            FROM schema_migrations
            ORDER BY version
            """)

        return [
            {"version": row[0], "name": row[1], "applied_at": row[2]}
            for row in cursor.fetchall()
        ]


def get_current_version(connection: sqlite3.Connection) -> int:
    """Helper function to get current schema version.

    Args:
        connection: Database connection

    Returns:
        Current version number
    """
    runner = MigrationRunner(connection)
    return runner.get_current_version()


def run_migrations(connection: sqlite3.Connection, migrations: list[Migration]) -> int:
    """Helper function to run migrations.

    Args:
        connection: Database connection
        migrations: List of migrations

    Returns:
        Number of migrations applied
    """
    runner = MigrationRunner(connection)
    return runner.run_migrations(migrations)
