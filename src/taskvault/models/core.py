"""Entity data models.

Rows are materialized into these models; ``*Create`` / ``*Update`` models are
the typed parameter builders that produce the column -> value mapping bound
into SQL. Unknown keys are rejected, so a shape mismatch fails here rather
than when the statement executes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

TaskStatus = Literal["todo", "in_progress", "blocked", "done"]

TASK_STATUSES: tuple[str, ...] = ("todo", "in_progress", "blocked", "done")


class SyncedEntity(BaseModel):
    """Columns shared by every primary entity.

    Attributes:
        id: Opaque unique identifier, immutable once assigned
        created_at: Creation time (epoch ms)
        updated_at: Last local modification (epoch ms)
        version: Monotonic change counter used for sync reconciliation
        dirty: True while the row has local changes not yet uploaded
        deleted_at: Soft-delete time (epoch ms) or None when visible
    """

    id: str
    created_at: int
    updated_at: int
    version: int = Field(default=0, ge=0)
    dirty: bool = True
    deleted_at: int | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class TaskList(SyncedEntity):
    """A list that groups tasks."""

    name: str
    color: str | None = None


class Label(SyncedEntity):
    """A label that can be attached to many tasks."""

    name: str
    color: str | None = None


class Task(SyncedEntity):
    """Task model.

    Attributes:
        list_id: Owning list, or None for an unfiled task
        title: Task title
        description: Optional longer text
        status: One of todo, in_progress, blocked, done
        priority: 0 (low) .. 3 (critical)
        start_date: Optional start (epoch ms)
        due_date: Optional due date (epoch ms)
        completed_at: Set while status is done (epoch ms)
        sort_order: Optional manual ordering key
    """

    list_id: str | None = None
    title: str
    description: str | None = None
    status: TaskStatus = "todo"
    priority: int = Field(default=1, ge=0, le=3)
    start_date: int | None = None
    due_date: int | None = None
    completed_at: int | None = None
    sort_order: float | None = None


class Subtask(SyncedEntity):
    """A checklist item under a task, ordered by a fractional key."""

    task_id: str
    title: str
    done: bool = False
    sort_order: float | None = None


class TaskLabel(BaseModel):
    """Task <-> Label link row."""

    task_id: str
    label_id: str


# ---------------------------------------------------------------------------
# Parameter builders
# ---------------------------------------------------------------------------


class _Params(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_params(self) -> dict[str, Any]:
        """Column -> value mapping for an INSERT."""
        return self.model_dump()


class _Changes(BaseModel):
    """Base for partial updates: only explicitly supplied fields are written."""

    model_config = ConfigDict(extra="forbid")

    # Columns that may not be set to NULL through an update
    _required: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_null_required(self):
        for name in self._required:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Column -> value mapping for the supplied fields only."""
        return self.model_dump(exclude_unset=True)


def _epoch(value: Any) -> Any:
    """Accept datetimes for epoch-ms columns; naive values are taken as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return int(value.timestamp() * 1000)
    return value


class TaskListCreate(_Params):
    name: str = Field(min_length=1)
    color: str | None = None


class TaskListUpdate(_Changes):
    _required: ClassVar[tuple[str, ...]] = ("name",)

    name: str | None = Field(default=None, min_length=1)
    color: str | None = None


class LabelCreate(_Params):
    """Model for creating a new label.

    Attributes:
        name: Label name (required, unique among live labels, case-insensitive)
        color: Optional hex color code
    """

    name: str = Field(min_length=1)
    color: str | None = None

    @field_validator("name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name cannot be blank")
        return value


class LabelUpdate(_Changes):
    _required: ClassVar[tuple[str, ...]] = ("name",)

    name: str | None = Field(default=None, min_length=1)
    color: str | None = None

    @field_validator("name")
    @classmethod
    def _strip(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("name cannot be blank")
        return value


class TaskCreate(_Params):
    """Model for creating a new task. Dates accept datetimes or epoch ms."""

    list_id: str | None = None
    title: str = Field(min_length=1)
    description: str | None = None
    status: TaskStatus = "todo"
    priority: int = Field(default=1, ge=0, le=3)
    start_date: int | None = None
    due_date: int | None = None
    completed_at: int | None = None
    sort_order: float | None = None

    _to_epoch = field_validator(
        "start_date", "due_date", "completed_at", mode="before"
    )(_epoch)


class TaskUpdate(_Changes):
    """Model for updating an existing task.

    All fields are optional - only provided fields will be updated. An explicit
    ``None`` clears a nullable column.
    """

    _required: ClassVar[tuple[str, ...]] = ("title", "status", "priority")

    list_id: str | None = None
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: TaskStatus | None = None
    priority: int | None = Field(default=None, ge=0, le=3)
    start_date: int | None = None
    due_date: int | None = None
    completed_at: int | None = None
    sort_order: float | None = None

    _to_epoch = field_validator(
        "start_date", "due_date", "completed_at", mode="before"
    )(_epoch)


class SubtaskCreate(_Params):
    task_id: str
    title: str = Field(min_length=1)
    done: bool = False
    sort_order: float | None = None

    def to_params(self) -> dict[str, Any]:
        params = super().to_params()
        params["done"] = int(self.done)
        return params


class SubtaskUpdate(_Changes):
    _required: ClassVar[tuple[str, ...]] = ("title", "done")

    title: str | None = Field(default=None, min_length=1)
    done: bool | None = None
    sort_order: float | None = None

    def changes(self) -> dict[str, Any]:
        changes = super().changes()
        if "done" in changes:
            changes["done"] = int(changes["done"])
        return changes


# ---------------------------------------------------------------------------
# Query helpers and aggregates
# ---------------------------------------------------------------------------


class TaskFilters(BaseModel):
    """Filters for querying tasks.

    Attributes:
        list_id: Only tasks in this list
        status: Only tasks with this status
        label_id: Only tasks carrying this label
        search: Substring match on title or description
        include_completed: When False, done tasks are excluded
        limit: Page size
        offset: Page offset (only applied together with limit)
    """

    list_id: str | None = None
    status: TaskStatus | None = None
    label_id: str | None = None
    search: str | None = None
    include_completed: bool = True
    limit: int | None = Field(default=None, ge=1)
    offset: int | None = Field(default=None, ge=0)


class AgendaRange(BaseModel):
    """Inclusive epoch-ms window used by agenda queries."""

    start: int
    end: int

    _to_epoch = field_validator("start", "end", mode="before")(_epoch)

    @model_validator(mode="after")
    def _ordered(self):
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self


class TaskListWithCounts(TaskList):
    task_count: int = 0
    completed_count: int = 0


class LabelWithCount(Label):
    task_count: int = 0


class TaskWithLabels(Task):
    labels: list[Label] = Field(default_factory=list)


class SubtaskStats(BaseModel):
    total: int = 0
    done: int = 0

    @property
    def percentage(self) -> int:
        return round(self.done / self.total * 100) if self.total else 0


class DatabaseStats(BaseModel):
    """Snapshot returned by Database.get_stats()."""

    tables: list[str]
    db_size: int
    schema_version: int
