"""Adapters module - Repository implementations for storage backends.

This package contains concrete implementations (adapters) for the repository interfaces:
- sqlite: Local SQLite vault storage
"""

from .sqlite import (
    Database,
    SqliteLabelRepository,
    SqliteListRepository,
    SqliteSubtaskRepository,
    SqliteTaskLabelRepository,
    SqliteTaskRepository,
)

__all__ = [
    "Database",
    "SqliteListRepository",
    "SqliteTaskRepository",
    "SqliteLabelRepository",
    "SqliteSubtaskRepository",
    "SqliteTaskLabelRepository",
]
