"""Tests for the taskvault maintenance CLI."""

from __future__ import annotations

import asyncio
import json

import pytest
from typer.testing import CliRunner

from taskvault import __version__
from taskvault.adapters.sqlite.migrations import LATEST_VERSION
from taskvault.main import app
from taskvault.models import TaskCreate, TaskListCreate
from taskvault.services.config_service import get_config_service
from taskvault.store import TaskStore

runner = CliRunner()


def _invoke(*args):
    return runner.invoke(app, list(args))


@pytest.fixture
def vault(tmp_path):
    return str(tmp_path / "cli.db")


def _seed(path: str, clean: bool = False) -> dict[str, str]:
    """Create a list with one task and a subtask; return their ids."""

    async def seed():
        async with TaskStore(path) as store:
            work = await store.lists.create(TaskListCreate(name="Work"))
            task = await store.tasks.create(TaskCreate(title="Report", list_id=work.id))
            await store.subtasks.add(task.id, "Draft")
            if clean:
                for repo in store.repositories.values():
                    for row in await repo.get_dirty():
                        await repo.mark_clean(row.id)
            return {"list": work.id, "task": task.id}

    return asyncio.run(seed())


class TestTopLevel:
    def test_help(self):
        result = _invoke("--help")
        assert result.exit_code == 0
        for command in ("init", "info", "migrate", "rollback", "history", "dirty", "config"):
            assert command in result.output

    def test_version(self):
        result = _invoke("version")
        assert result.exit_code == 0
        assert __version__ in result.output


class TestVault:
    def test_init_creates_vault(self, vault):
        result = _invoke("init", "--db", vault)
        assert result.exit_code == 0
        assert f"schema v{LATEST_VERSION}" in result.output

    def test_init_defaults_to_data_dir(self, tmp_dirs):
        result = _invoke("init")
        assert result.exit_code == 0
        assert (tmp_dirs / "data" / "vault.db").exists()

    def test_info_json(self, vault):
        _seed(vault)
        result = _invoke("info", "--db", vault, "--json")
        assert result.exit_code == 0

        payload = json.loads(result.stdout)
        assert payload["schema_version"] == LATEST_VERSION
        assert payload["rows"]["tasks"] == {"live": 1, "total": 1, "dirty": 1}
        assert payload["rows"]["labels"]["total"] == 0

    def test_info_table(self, vault):
        _seed(vault)
        result = _invoke("info", "--db", vault)
        assert result.exit_code == 0
        assert "Schema version" in result.output
        assert "subtasks" in result.output


class TestSchemaCommands:
    def test_migrate_fresh_vault(self, vault):
        result = _invoke("migrate", "--db", vault)
        assert result.exit_code == 0
        assert f"Applied {LATEST_VERSION} migration(s)" in result.output

        again = _invoke("migrate", "--db", vault)
        assert again.exit_code == 0
        assert "up to date" in again.output

    def test_rollback_and_history(self, vault):
        _invoke("init", "--db", vault)

        result = _invoke("rollback", "1", "--db", vault)
        assert result.exit_code == 0
        assert f"Rolled back {LATEST_VERSION - 1} migration(s)" in result.output

        history = _invoke("history", "--db", vault)
        assert history.exit_code == 0
        assert "initial_schema" in history.output
        assert "sync_and_order_indexes" not in history.output

    def test_rollback_negative_version(self, vault):
        result = _invoke("rollback", "--db", vault, "--", "-1")
        assert result.exit_code == 2


class TestSyncCommands:
    def test_dirty_lists_pending_rows(self, vault):
        ids = _seed(vault)
        result = _invoke("dirty", "--db", vault, "--entity", "tasks")
        assert result.exit_code == 0
        assert ids["task"][:8] in result.output

    def test_dirty_when_clean(self, vault):
        _seed(vault, clean=True)
        result = _invoke("dirty", "--db", vault)
        assert result.exit_code == 0
        assert "Nothing to sync" in result.output

    def test_dirty_unknown_entity(self, vault):
        result = _invoke("dirty", "--db", vault, "--entity", "bogus")
        assert result.exit_code == 2
        assert "Unknown entity" in result.output

    def test_rebalance(self, vault):
        ids = _seed(vault)
        result = _invoke("rebalance", ids["task"], "--db", vault)
        assert result.exit_code == 0
        assert "Renumbered 0 subtask(s)" in result.output

    def test_rebalance_unknown_task(self, vault):
        result = _invoke("rebalance", "no-such-task", "--db", vault)
        assert result.exit_code == 5


class TestConfigCommands:
    def test_show(self):
        result = _invoke("config", "show")
        assert result.exit_code == 0
        assert '"journal_mode": "WAL"' in result.output

    def test_set_and_reset(self):
        result = _invoke("config", "set", "operation_timeout", "2.5")
        assert result.exit_code == 0
        assert get_config_service().store.operation_timeout == 2.5

        cleared = _invoke("config", "set", "operation_timeout", "none")
        assert cleared.exit_code == 0
        assert get_config_service().store.operation_timeout is None

        reset = _invoke("config", "reset")
        assert reset.exit_code == 0
        assert get_config_service().store.operation_timeout == 10.0

    def test_set_unknown_key(self):
        result = _invoke("config", "set", "colour", "red")
        assert result.exit_code == 2

    def test_set_invalid_value(self):
        result = _invoke("config", "set", "--", "busy_timeout", "-1")
        assert result.exit_code == 2

    def test_configured_path_used_by_default(self, tmp_path):
        target = tmp_path / "configured.db"
        assert _invoke("config", "set", "db_path", str(target)).exit_code == 0

        result = _invoke("init")
        assert result.exit_code == 0
        assert target.exists()
