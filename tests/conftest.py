"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from real filesystem state: logs,
config and vault files all land in temporary directories.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
import pytest_asyncio

from taskvault.adapters.sqlite.connection import Database
from taskvault.models import LabelCreate, TaskCreate, TaskListCreate
from taskvault.store import TaskStore
from taskvault.utils.logger import get_logger


@pytest.fixture(scope="session", autouse=True)
def _isolated_logger(tmp_path_factory):
    """Initialise the application logger inside a temporary directory."""
    return get_logger(tmp_path_factory.mktemp("logs"))


@pytest.fixture(autouse=True)
def tmp_dirs(tmp_path):
    """Point config and default data locations at *tmp_path*.

    Also clears the lru_cache so each test gets a fresh config service.
    """
    from taskvault.services.config_service import get_config_service

    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"
    get_config_service.cache_clear()
    with patch(
        "taskvault.services.config_service.user_config_dir", return_value=str(config_dir)
    ):
        with patch(
            "taskvault.adapters.sqlite.connection.user_data_dir", return_value=str(data_dir)
        ):
            yield tmp_path
    get_config_service.cache_clear()


# ---------------------------------------------------------------------------
# Database and store fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db():
    """Fresh, fully migrated in-memory database."""
    database = Database(":memory:")
    await database.init()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def store(tmp_path):
    """TaskStore backed by an on-disk vault in *tmp_path*."""
    task_store = TaskStore(tmp_path / "vault.db")
    await task_store.open()
    yield task_store
    await task_store.close()


@pytest_asyncio.fixture
async def work_list(store):
    return await store.lists.create(TaskListCreate(name="Work", color="#3366ff"))


@pytest_asyncio.fixture
async def report_task(store, work_list):
    return await store.tasks.create(TaskCreate(title="Report", list_id=work_list.id))


@pytest_asyncio.fixture
async def urgent_label(store):
    return await store.labels.create(LabelCreate(name="urgent", color="#ff0000"))
