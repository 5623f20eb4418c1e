"""taskvault domain models.

This package contains Pydantic models for the persisted entities, the typed
create/update parameter builders, query filters and configuration.
"""

from .config_models import AppConfig, StoreConfig
from .core import (
    TASK_STATUSES,
    AgendaRange,
    DatabaseStats,
    Label,
    LabelCreate,
    LabelUpdate,
    LabelWithCount,
    Subtask,
    SubtaskCreate,
    SubtaskStats,
    SubtaskUpdate,
    SyncedEntity,
    Task,
    TaskCreate,
    TaskFilters,
    TaskLabel,
    TaskList,
    TaskListCreate,
    TaskListUpdate,
    TaskListWithCounts,
    TaskStatus,
    TaskUpdate,
    TaskWithLabels,
)

__all__ = [
    # Shared
    "SyncedEntity",
    "DatabaseStats",
    # List models
    "TaskList",
    "TaskListCreate",
    "TaskListUpdate",
    "TaskListWithCounts",
    # Task models
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskFilters",
    "TaskStatus",
    "TASK_STATUSES",
    "TaskWithLabels",
    "AgendaRange",
    # Label models
    "Label",
    "LabelCreate",
    "LabelUpdate",
    "LabelWithCount",
    "TaskLabel",
    # Subtask models
    "Subtask",
    "SubtaskCreate",
    "SubtaskUpdate",
    "SubtaskStats",
    # Config models
    "AppConfig",
    "StoreConfig",
]
