"""SQLite adapter module - Local vault storage implementation."""

from taskvault.adapters.sqlite.connection import Database, default_db_path
from taskvault.adapters.sqlite.label_repository import SqliteLabelRepository
from taskvault.adapters.sqlite.list_repository import SqliteListRepository
from taskvault.adapters.sqlite.subtask_repository import SqliteSubtaskRepository
from taskvault.adapters.sqlite.task_label_repository import SqliteTaskLabelRepository
from taskvault.adapters.sqlite.task_repository import SqliteTaskRepository

__all__ = [
    "Database",
    "default_db_path",
    "SqliteListRepository",
    "SqliteTaskRepository",
    "SqliteLabelRepository",
    "SqliteSubtaskRepository",
    "SqliteTaskLabelRepository",
]
