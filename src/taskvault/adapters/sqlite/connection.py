"""Database connection management for the SQLite local vault.

This module provides :class:`Database`, an explicitly constructed connection
manager. Whoever creates it owns its lifetime, so tests and tools can hold
isolated instances side by side.

Provides:
- One connection per Database, opened lazily by ``init()``
- WAL mode and foreign key enforcement
- Pending migrations applied before the handle is handed out
- Serialized access: concurrent callers queue on an asyncio lock
- Scoped transactions with guaranteed rollback (savepoints when nested)
- Per-statement deadlines through an SQLite progress handler
- Engine errors mapped onto the taskvault error taxonomy
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import sqlite3
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

from platformdirs import user_data_dir

from taskvault.adapters.sqlite.migrations import ALL_MIGRATIONS, Migration, MigrationRunner
from taskvault.adapters.sqlite.utils import row_to_dict
from taskvault.errors import (
    DatabaseError,
    ForeignKeyViolationError,
    OperationTimeoutError,
    StoreConnectionError,
    TransactionError,
    UniqueConstraintError,
)
from taskvault.models import DatabaseStats, StoreConfig
from taskvault.utils.logger import get_logger

T = TypeVar("T")

Params = Sequence[Any] | dict[str, Any]

MEMORY_PATH = ":memory:"

# Progress handler granularity (SQLite VM instructions between deadline checks)
_PROGRESS_STEPS = 1000

_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: (\w+)\.(\w+)")


def default_db_path() -> Path:
    """Vault location when neither an explicit path nor config provides one."""
    return Path(user_data_dir("taskvault")) / "vault.db"


class Database:
    """Connection and transaction manager for one vault file."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        config: StoreConfig | None = None,
        migrations: list[Migration] | None = None,
        logger: logging.Logger | None = None,
    ):
        """Create an unopened manager.

        Args:
            db_path: Database file, ``":memory:"``, or None for the configured
                or platform default location
            config: Store configuration (timeouts, journal mode)
            migrations: Migrations applied by ``init()``; defaults to all
                shipped migrations
            logger: Optional logger, defaults to the application logger
        """
        self.config = config or StoreConfig()
        if db_path is None:
            db_path = self.config.db_path or default_db_path()
        self.db_path: Path | str = (
            MEMORY_PATH if str(db_path) == MEMORY_PATH else Path(db_path)
        )
        self.migrations = list(ALL_MIGRATIONS if migrations is None else migrations)
        self._logger = logger or get_logger()

        self._connection: sqlite3.Connection | None = None
        self._lock = asyncio.Lock()
        self._lock_owner: asyncio.Task | None = None
        self._tx_depth = 0
        self._deadline: float | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._connection is not None

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    async def init(self, migrate: bool = True) -> sqlite3.Connection:
        """Open the handle (idempotent) and bring the schema up to date.

        Args:
            migrate: Apply pending migrations; maintenance tools pass False
                to inspect or roll back a vault as it is

        Raises:
            StoreConnectionError: If the file cannot be opened or migrated
        """
        if self._connection is not None:
            return self._connection

        async with self._exclusive():
            if self._connection is None:
                self._connection = self._open(migrate)
        return self._connection

    def _open(self, migrate: bool) -> sqlite3.Connection:
        is_memory = self.db_path == MEMORY_PATH
        is_new_database = False
        if not is_memory:
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StoreConnectionError(
                    f"Cannot create data directory for {self.db_path}: {e}"
                ) from e
            is_new_database = not self.db_path.exists()

        try:
            connection = sqlite3.connect(
                str(self.db_path),
                isolation_level=None,  # BEGIN/COMMIT are issued explicitly
                check_same_thread=False,
                timeout=self.config.busy_timeout,
            )
        except sqlite3.Error as e:
            raise StoreConnectionError(f"Cannot open database {self.db_path}: {e}") from e

        try:
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys = ON")
            journal_mode = connection.execute(
                f"PRAGMA journal_mode = {self.config.journal_mode}"
            ).fetchone()[0]
            connection.execute(
                f"PRAGMA busy_timeout = {int(self.config.busy_timeout * 1000)}"
            )

            # Owner read/write only
            if is_new_database:
                os.chmod(self.db_path, 0o600)

            runner = MigrationRunner(connection, self._logger)
            applied = runner.run_migrations(self.migrations) if migrate else 0
        except Exception as e:
            connection.close()
            self._logger.error("failed to initialise %s: %s", self.db_path, e)
            raise StoreConnectionError(
                f"Cannot initialise database {self.db_path}: {e}"
            ) from e

        connection.set_progress_handler(self._deadline_exceeded, _PROGRESS_STEPS)
        self._logger.info(
            "opened %s (journal_mode=%s, migrations applied=%s)",
            self.db_path,
            journal_mode,
            applied,
        )
        return connection

    def get_handle(self) -> sqlite3.Connection:
        """Return the open connection.

        Raises:
            StoreConnectionError: If called before init() or after close()
        """
        if self._connection is None:
            raise StoreConnectionError("Database is not initialised; call init() first")
        return self._connection

    async def close(self) -> None:
        """Release the handle. Any later use requires init() again."""
        if self._connection is None:
            return

        async with self._exclusive():
            connection, self._connection = self._connection, None
            self._tx_depth = 0
            try:
                connection.close()
            except sqlite3.Error as e:
                self._logger.warning("error while closing %s: %s", self.db_path, e)
            self._logger.info("closed %s", self.db_path)

    # ------------------------------------------------------------------
    # Serialization and deadlines
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        """Hold the connection lock; re-entrant for the owning task."""
        task = asyncio.current_task()
        if self._lock_owner is not None and self._lock_owner is task:
            yield
            return

        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.config.lock_timeout)
        except TimeoutError as e:
            raise OperationTimeoutError(
                f"Timed out after {self.config.lock_timeout}s waiting for the database connection"
            ) from e

        self._lock_owner = task
        try:
            yield
        finally:
            self._lock_owner = None
            self._lock.release()

    def _deadline_exceeded(self) -> int:
        # Non-zero return makes SQLite interrupt the running statement
        if self._deadline is not None and time.monotonic() > self._deadline:
            return 1
        return 0

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Database]:
        """Scope a BEGIN/COMMIT block; nested scopes become savepoints.

        On any exception the work is rolled back and the exception re-raised.
        A failing rollback is logged and never replaces the original error.

        Raises:
            TransactionError: If BEGIN or COMMIT fails
        """
        async with self._exclusive():
            connection = self.get_handle()
            depth = self._tx_depth
            savepoint = f"taskvault_sp_{depth}"
            begin = "BEGIN IMMEDIATE" if depth == 0 else f"SAVEPOINT {savepoint}"

            try:
                connection.execute(begin)
            except sqlite3.Error as e:
                raise TransactionError(f"Could not begin transaction: {e}") from e

            self._tx_depth = depth + 1
            try:
                yield self
            except BaseException:
                self._tx_depth = depth
                self._rollback(connection, depth, savepoint)
                raise

            self._tx_depth = depth
            commit = "COMMIT" if depth == 0 else f"RELEASE SAVEPOINT {savepoint}"
            try:
                connection.execute(commit)
            except sqlite3.Error as e:
                self._rollback(connection, depth, savepoint)
                raise TransactionError(f"Commit failed: {e}") from e

    def _rollback(self, connection: sqlite3.Connection, depth: int, savepoint: str) -> None:
        try:
            if depth == 0:
                connection.execute("ROLLBACK")
            else:
                connection.execute(f"ROLLBACK TO SAVEPOINT {savepoint}")
                connection.execute(f"RELEASE SAVEPOINT {savepoint}")
        except sqlite3.Error as rollback_error:
            self._logger.error(
                "rollback failed (depth=%s): %s", depth, rollback_error, exc_info=True
            )

    async def run_in_transaction(self, body: Callable[[Database], Awaitable[T]]) -> T:
        """Run ``await body(db)`` inside ``transaction()`` and return its result."""
        async with self.transaction():
            return await body(self)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _statement(self, sql: str, params: Params | None, fetch: str | None) -> Any:
        connection = self.get_handle()
        timeout = self.config.operation_timeout
        self._deadline = time.monotonic() + timeout if timeout else None
        try:
            cursor = connection.execute(sql, params or ())
            if fetch == "one":
                return cursor.fetchone()
            if fetch == "all":
                return cursor.fetchall()
            return cursor.rowcount
        except sqlite3.Error as e:
            self._logger.debug("statement failed: %s -- %s", " ".join(sql.split()), e)
            raise self._wrap_error(e, sql) from e
        finally:
            self._deadline = None

    def _wrap_error(self, error: sqlite3.Error, sql: str) -> Exception:
        message = str(error)
        if isinstance(error, sqlite3.IntegrityError):
            match = _UNIQUE_RE.search(message)
            if match:
                exc = UniqueConstraintError(match.group(1), match.group(2), None)
                exc.statement = sql
                return exc
            if "FOREIGN KEY constraint failed" in message:
                exc = ForeignKeyViolationError("parent row", "unknown", sql.split()[0].lower())
                exc.statement = sql
                return exc
        if isinstance(error, sqlite3.OperationalError) and "interrupted" in message:
            return OperationTimeoutError(
                f"Statement exceeded the {self.config.operation_timeout}s operation timeout",
                sql,
            )
        return DatabaseError(message, sql)

    async def execute(self, sql: str, params: Params | None = None) -> None:
        """Run a statement whose result is not needed (DDL, PRAGMA, DML)."""
        async with self._exclusive():
            self._statement(sql, params, None)

    async def query_first(self, sql: str, params: Params | None = None) -> dict[str, Any] | None:
        """Return the first row as a dict, or None."""
        async with self._exclusive():
            row = self._statement(sql, params, "one")
        return row_to_dict(row) if row is not None else None

    async def query_all(self, sql: str, params: Params | None = None) -> list[dict[str, Any]]:
        """Return every row as a dict."""
        async with self._exclusive():
            rows = self._statement(sql, params, "all")
        return [row_to_dict(row) for row in rows]

    async def insert(self, sql: str, params: Params | None = None) -> int:
        """Run an INSERT; returns the number of rows inserted."""
        async with self._exclusive():
            return self._statement(sql, params, None)

    async def modify(self, sql: str, params: Params | None = None) -> int:
        """Run an UPDATE/DELETE; returns the number of rows affected."""
        async with self._exclusive():
            return self._statement(sql, params, None)

    async def scalar(self, sql: str, params: Params | None = None) -> Any:
        """Return the first column of the first row, or None."""
        async with self._exclusive():
            row = self._statement(sql, params, "one")
        return row[0] if row is not None else None

    # ------------------------------------------------------------------
    # Schema maintenance
    # ------------------------------------------------------------------

    async def schema_version(self) -> int:
        value = await self.scalar("SELECT MAX(version) FROM schema_migrations")
        return value or 0

    async def migrate(self) -> int:
        """Apply pending migrations on an open database."""
        async with self._exclusive():
            return MigrationRunner(self.get_handle(), self._logger).run_migrations(
                self.migrations
            )

    async def rollback_to(self, version: int) -> int:
        """Reverse migrations down to ``version``; returns steps reversed."""
        async with self._exclusive():
            return MigrationRunner(self.get_handle(), self._logger).rollback_to(
                version, self.migrations
            )

    async def get_migration_history(self) -> list[dict]:
        async with self._exclusive():
            return MigrationRunner(self.get_handle(), self._logger).get_migration_history()

    async def get_stats(self) -> DatabaseStats:
        """Table names, file size (page_size * page_count) and schema version."""
        rows = await self.query_all(
            "SELECT name FROM sqlite_master WHERE type = 'table' "
            "AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        page_size = await self.scalar("PRAGMA page_size")
        page_count = await self.scalar("PRAGMA page_count")
        return DatabaseStats(
            tables=[row["name"] for row in rows],
            db_size=(page_size or 0) * (page_count or 0),
            schema_version=await self.schema_version(),
        )
