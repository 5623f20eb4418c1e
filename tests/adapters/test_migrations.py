"""Unit tests for the MigrationRunner and the shipped migrations."""

from __future__ import annotations

import sqlite3

import pytest

from taskvault.adapters.sqlite.migrations import (
    ALL_MIGRATIONS,
    LATEST_VERSION,
    Migration,
    MigrationRunner,
    get_current_version,
    run_migrations,
)
from taskvault.adapters.sqlite.migrations.m001_initial_schema import initial_migration
from taskvault.errors import MigrationError


# ---------------------------------------------------------------------------
# Concrete test migrations
# ---------------------------------------------------------------------------


class _CreateTable(Migration):
    def __init__(self, version: int, table: str):
        self._version = version
        self.table = table

    @property
    def version(self) -> int:
        return self._version

    @property
    def name(self) -> str:
        return f"create_{self.table}"

    def up(self, connection: sqlite3.Connection) -> None:
        connection.execute(f"CREATE TABLE {self.table} (id INTEGER PRIMARY KEY)")

    def down(self, connection: sqlite3.Connection) -> None:
        connection.execute(f"DROP TABLE {self.table}")


class _FailingMigration(Migration):
    @property
    def version(self) -> int:
        return 3

    @property
    def name(self) -> str:
        return "fails_halfway"

    def up(self, connection: sqlite3.Connection) -> None:
        connection.execute("CREATE TABLE partial (id INTEGER)")
        raise RuntimeError("Migration failure!")

    def down(self, connection: sqlite3.Connection) -> None:
        raise RuntimeError("Rollback failure!")


def _tables(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    return {row[0] for row in rows}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mem_conn():
    conn = sqlite3.connect(":memory:", isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    yield conn
    conn.close()


@pytest.fixture
def runner(mem_conn):
    return MigrationRunner(mem_conn)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class TestRunner:
    def test_version_table_created(self, runner, mem_conn):
        assert "schema_migrations" in _tables(mem_conn)

    def test_fresh_database_is_version_zero(self, runner, mem_conn):
        assert runner.get_current_version() == 0
        assert get_current_version(mem_conn) == 0

    def test_applies_pending_in_order(self, runner, mem_conn):
        applied = runner.run_migrations([_CreateTable(2, "two"), _CreateTable(1, "one")])
        assert applied == 2
        assert runner.get_current_version() == 2
        assert {"one", "two"} <= _tables(mem_conn)

    def test_second_run_is_noop(self, runner):
        runner.run_migrations([_CreateTable(1, "one")])
        assert runner.run_migrations([_CreateTable(1, "one")]) == 0

    def test_helper_function(self, mem_conn):
        assert run_migrations(mem_conn, [_CreateTable(1, "one")]) == 1

    def test_rejects_old_version(self, runner):
        runner.run_migration(_CreateTable(2, "two"))
        with pytest.raises(ValueError, match="not greater than current version"):
            runner.run_migration(_CreateTable(1, "one"))

    def test_failure_rolls_back_only_failing_step(self, runner, mem_conn):
        migrations = [_CreateTable(1, "one"), _CreateTable(2, "two"), _FailingMigration()]
        with pytest.raises(MigrationError) as exc_info:
            runner.run_migrations(migrations)

        assert exc_info.value.version == 3
        assert "Migration 3 failed" in str(exc_info.value)
        assert runner.get_current_version() == 2
        assert "partial" not in _tables(mem_conn)
        assert {"one", "two"} <= _tables(mem_conn)

    def test_foreign_keys_restored_after_run(self, runner, mem_conn):
        runner.run_migrations([_CreateTable(1, "one")])
        assert mem_conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1

    def test_history(self, runner):
        runner.run_migrations([_CreateTable(1, "one"), _CreateTable(2, "two")])
        history = runner.get_migration_history()
        assert [h["version"] for h in history] == [1, 2]
        assert [h["name"] for h in history] == ["create_one", "create_two"]
        assert all(isinstance(h["applied_at"], int) for h in history)


class TestRollback:
    def test_rollback_to_zero(self, runner, mem_conn):
        migrations = [_CreateTable(1, "one"), _CreateTable(2, "two")]
        runner.run_migrations(migrations)

        assert runner.rollback_to(0, migrations) == 2
        assert runner.get_current_version() == 0
        assert not {"one", "two"} & _tables(mem_conn)

    def test_rollback_to_current_is_noop(self, runner):
        migrations = [_CreateTable(1, "one")]
        runner.run_migrations(migrations)
        assert runner.rollback_to(1, migrations) == 0
        assert runner.rollback_to(5, migrations) == 0

    def test_negative_target_rejected(self, runner):
        with pytest.raises(ValueError):
            runner.rollback_to(-1, [])

    def test_missing_migration_rejected(self, runner):
        runner.run_migrations([_CreateTable(1, "one"), _CreateTable(2, "two")])
        with pytest.raises(MigrationError, match="v2"):
            runner.rollback_to(0, [_CreateTable(1, "one")])
        assert runner.get_current_version() == 2

    def test_failing_down_keeps_version(self, runner, mem_conn):
        runner.run_migrations([_CreateTable(1, "one"), _CreateTable(2, "two")])
        mem_conn.execute(
            "INSERT INTO schema_migrations (version, name, applied_at) VALUES (3, 'x', 0)"
        )
        with pytest.raises(MigrationError, match="Rollback 3 failed"):
            runner.rollback_to(0, [_CreateTable(1, "one"), _CreateTable(2, "two"), _FailingMigration()])
        assert runner.get_current_version() == 3


# ---------------------------------------------------------------------------
# Shipped migrations
# ---------------------------------------------------------------------------


def _seed_v1(conn: sqlite3.Connection) -> None:
    conn.execute(
        "INSERT INTO lists (id, name, created_at, updated_at) VALUES ('l1', 'Work', 1, 1)"
    )
    conn.execute(
        "INSERT INTO tasks (id, list_id, title, status, priority, created_at, updated_at) "
        "VALUES ('t1', 'l1', 'Report', 'todo', 1, 1, 1)"
    )
    conn.execute(
        "INSERT INTO labels (id, name, created_at, updated_at) VALUES ('lb1', 'urgent', 1, 1)"
    )
    conn.execute("INSERT INTO task_labels (task_id, label_id) VALUES ('t1', 'lb1')")
    conn.execute(
        "INSERT INTO subtasks (id, task_id, title, sort_order, created_at, updated_at) "
        "VALUES ('s1', 't1', 'Draft', 1.0, 1, 1)"
    )


class TestShippedMigrations:
    def test_all_migrations_apply(self, runner, mem_conn):
        assert runner.run_migrations(ALL_MIGRATIONS) == LATEST_VERSION
        assert {"lists", "tasks", "labels", "task_labels", "subtasks"} <= _tables(mem_conn)

    def test_v1_requires_list_id(self, runner, mem_conn):
        runner.run_migrations([initial_migration])
        with pytest.raises(sqlite3.IntegrityError):
            mem_conn.execute(
                "INSERT INTO tasks (id, list_id, title, status, priority, created_at, updated_at) "
                "VALUES ('t1', NULL, 'x', 'todo', 1, 1, 1)"
            )

    def test_v2_keeps_data_and_allows_unfiled_tasks(self, runner, mem_conn):
        runner.run_migrations([initial_migration])
        _seed_v1(mem_conn)

        runner.run_migrations(ALL_MIGRATIONS)

        assert mem_conn.execute("SELECT COUNT(*) FROM tasks").fetchone()[0] == 1
        assert mem_conn.execute("SELECT COUNT(*) FROM subtasks").fetchone()[0] == 1
        assert mem_conn.execute("SELECT COUNT(*) FROM task_labels").fetchone()[0] == 1
        mem_conn.execute(
            "INSERT INTO tasks (id, list_id, title, status, priority, created_at, updated_at) "
            "VALUES ('t2', NULL, 'Unfiled', 'todo', 1, 1, 1)"
        )

    def test_v2_hard_deleting_list_unfiles_tasks(self, runner, mem_conn):
        runner.run_migrations(ALL_MIGRATIONS)
        _seed_v1(mem_conn)
        mem_conn.execute("DELETE FROM lists WHERE id = 'l1'")
        row = mem_conn.execute("SELECT list_id FROM tasks WHERE id = 't1'").fetchone()
        assert row[0] is None

    def test_v2_down_drops_unfiled_tasks_and_children(self, runner, mem_conn):
        runner.run_migrations(ALL_MIGRATIONS)
        _seed_v1(mem_conn)
        mem_conn.execute(
            "INSERT INTO tasks (id, list_id, title, status, priority, created_at, updated_at) "
            "VALUES ('t2', NULL, 'Unfiled', 'todo', 1, 1, 1)"
        )
        mem_conn.execute(
            "INSERT INTO subtasks (id, task_id, title, created_at, updated_at) "
            "VALUES ('s2', 't2', 'Orphan soon', 1, 1)"
        )

        assert runner.rollback_to(1, ALL_MIGRATIONS) == LATEST_VERSION - 1

        task_ids = [r[0] for r in mem_conn.execute("SELECT id FROM tasks").fetchall()]
        subtask_ids = [r[0] for r in mem_conn.execute("SELECT id FROM subtasks").fetchall()]
        assert task_ids == ["t1"]
        assert subtask_ids == ["s1"]

    def test_v3_indexes_created_and_removed(self, runner, mem_conn):
        def indexes():
            rows = mem_conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'index'"
            ).fetchall()
            return {row[0] for row in rows}

        runner.run_migrations(ALL_MIGRATIONS)
        assert {"idx_labels_name_live", "idx_subtasks_task_order"} <= indexes()

        runner.rollback_to(2, ALL_MIGRATIONS)
        assert runner.get_current_version() == 2
        assert "idx_subtasks_task_order" not in indexes()
        assert "idx_labels_name_live" in indexes()

    def test_full_rollback_and_reapply(self, runner, mem_conn):
        runner.run_migrations(ALL_MIGRATIONS)
        runner.rollback_to(0, ALL_MIGRATIONS)
        assert not {"lists", "tasks", "labels", "task_labels", "subtasks"} & _tables(mem_conn)
        assert runner.run_migrations(ALL_MIGRATIONS) == LATEST_VERSION
