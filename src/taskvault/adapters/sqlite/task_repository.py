"""SQLite implementation of the task repository."""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from taskvault.adapters.sqlite.base_repository import (
    TOUCH,
    SqliteEntityRepository,
    ensure_live,
)
from taskvault.adapters.sqlite.utils import (
    escape_like,
    now_ms,
    placeholders,
    to_epoch_ms,
)
from taskvault.models import (
    AgendaRange,
    Label,
    Task,
    TaskCreate,
    TaskFilters,
    TaskStatus,
    TaskUpdate,
    TaskWithLabels,
)

_WEEK_MS = 7 * 24 * 60 * 60 * 1000


def default_order(alias: str = "") -> str:
    """Status rank, priority (high first), due date (nulls last), recent first."""
    p = f"{alias}." if alias else ""
    return (
        f"CASE {p}status WHEN 'todo' THEN 0 WHEN 'in_progress' THEN 1 "
        f"WHEN 'blocked' THEN 2 ELSE 3 END, "
        f"{p}priority DESC, {p}due_date IS NULL, {p}due_date ASC, {p}updated_at DESC"
    )


# Tasks due, starting, or spanning a window
_IN_RANGE = (
    "((due_date >= ? AND due_date <= ?) OR "
    "(start_date >= ? AND start_date <= ?) OR "
    "(start_date <= ? AND due_date >= ?))"
)


class SqliteTaskRepository(SqliteEntityRepository[Task, TaskCreate, TaskUpdate]):
    """SQLite implementation of task repository.

    ``completed_at`` follows ``status``: entering ``done`` stamps it and
    leaving ``done`` clears it, unless the caller supplies a value.
    """

    table = "tasks"
    entity = "Task"
    model = Task
    order_by = default_order()
    link_column = "task_id"

    async def _before_create(self, params: dict[str, Any]) -> dict[str, Any]:
        if params.get("list_id") is not None:
            await ensure_live(self.db, "lists", "List", params["list_id"], "create", "Task")
        if params["status"] == "done" and params.get("completed_at") is None:
            params["completed_at"] = now_ms()
        return params

    async def _before_update(self, current: Task, changes: dict[str, Any]) -> dict[str, Any]:
        if changes.get("list_id") is not None:
            await ensure_live(self.db, "lists", "List", changes["list_id"], "update", "Task")

        status = changes.get("status")
        if status and status != current.status and "completed_at" not in changes:
            if status == "done":
                changes["completed_at"] = now_ms()
            elif current.status == "done":
                changes["completed_at"] = None
        return changes

    async def _before_restore(self, current: Task) -> None:
        if current.list_id is not None:
            await ensure_live(self.db, "lists", "List", current.list_id, "restore", "Task")

    async def query(self, filters: TaskFilters) -> list[Task]:
        """List live tasks with filtering."""
        query = "SELECT t.* FROM tasks t WHERE t.deleted_at IS NULL"
        params: list[Any] = []

        if filters.list_id:
            query += " AND t.list_id = ?"
            params.append(filters.list_id)

        if filters.status:
            query += " AND t.status = ?"
            params.append(filters.status)
        elif not filters.include_completed:
            query += " AND t.status != 'done'"

        if filters.label_id:
            query += (
                " AND EXISTS (SELECT 1 FROM task_labels tl"
                " WHERE tl.task_id = t.id AND tl.label_id = ?)"
            )
            params.append(filters.label_id)

        if filters.search:
            pattern = f"%{escape_like(filters.search)}%"
            query += (
                " AND (t.title LIKE ? ESCAPE '\\' OR t.description LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern])

        query += f" ORDER BY {default_order('t')}"

        # Pagination
        if filters.limit:
            query += " LIMIT ?"
            params.append(filters.limit)
            if filters.offset:
                query += " OFFSET ?"
                params.append(filters.offset)

        rows = await self.db.query_all(query, params)
        return [Task(**row) for row in rows]

    async def get_by_list(self, list_id: str) -> list[Task]:
        return await self.query(TaskFilters(list_id=list_id))

    async def get_by_status(self, status: TaskStatus) -> list[Task]:
        return await self.query(TaskFilters(status=status))

    async def get_by_label(
        self,
        label_id: str,
        status: TaskStatus | None = None,
        include_completed: bool = True,
    ) -> list[Task]:
        return await self.query(
            TaskFilters(label_id=label_id, status=status, include_completed=include_completed)
        )

    async def search(self, text: str, list_id: str | None = None) -> list[Task]:
        """Substring search over title and description."""
        return await self.query(TaskFilters(search=text, list_id=list_id))

    async def get_agenda(self, window: AgendaRange) -> list[Task]:
        """Live tasks due, starting, or running within ``window``."""
        bounds = [window.start, window.end] * 3
        return await self._select(f"deleted_at IS NULL AND {_IN_RANGE}", bounds)

    async def get_overdue(self, now: int | None = None) -> list[Task]:
        """Unfinished tasks whose due date has passed."""
        now = to_epoch_ms(now) if now is not None else now_ms()
        return await self._select(
            "due_date < ? AND status != 'done' AND deleted_at IS NULL", (now,)
        )

    async def get_this_week(self, now: int | None = None) -> list[Task]:
        """Unfinished tasks due within the next seven days."""
        now = to_epoch_ms(now) if now is not None else now_ms()
        return await self._select(
            "due_date >= ? AND due_date <= ? AND status != 'done' AND deleted_at IS NULL",
            (now, now + _WEEK_MS),
        )

    async def mark_done(self, task_id: str) -> Task:
        """Set status to done (stamps completed_at)."""
        return await self.update(task_id, TaskUpdate(status="done"))

    async def count_by_list(self, list_id: str, status: TaskStatus | None = None) -> int:
        query = "SELECT COUNT(*) FROM tasks WHERE list_id = ? AND deleted_at IS NULL"
        params: list[Any] = [list_id]
        if status:
            query += " AND status = ?"
            params.append(status)
        return await self.db.scalar(query, params)

    async def move_all(self, from_list_id: str, to_list_id: str) -> int:
        """Move every live task of one list to another.

        Returns:
            Number of tasks moved

        Raises:
            ForeignKeyViolationError: If the target list is missing or deleted
        """
        async with self.db.transaction():
            await ensure_live(self.db, "lists", "List", to_list_id, "move_all", "Task")
            return await self.db.modify(
                f"UPDATE tasks SET list_id = ?, {TOUCH} "
                "WHERE list_id = ? AND deleted_at IS NULL",
                (to_list_id, now_ms(), from_list_id),
            )

    async def update_sort_order(self, task_id: str, sort_order: float) -> bool:
        """Set the manual ordering key of a live task."""
        changed = await self.db.modify(
            f"UPDATE tasks SET sort_order = ?, {TOUCH} WHERE id = ? AND deleted_at IS NULL",
            (sort_order, now_ms(), task_id),
        )
        return changed > 0

    async def get_by_list_custom_order(self, list_id: str) -> list[Task]:
        """Tasks of a list by manual key first, unkeyed tasks after."""
        rows = await self.db.query_all(
            f"""
            SELECT * FROM tasks
            WHERE list_id = ? AND deleted_at IS NULL
            ORDER BY sort_order IS NULL, sort_order ASC, {default_order()}
            """,
            (list_id,),
        )
        return [Task(**row) for row in rows]

    async def get_with_labels(self, task_ids: list[str]) -> list[TaskWithLabels]:
        """Live tasks with their live labels attached."""
        if not task_ids:
            return []

        marks = placeholders(len(task_ids))
        task_rows = await self.db.query_all(
            f"SELECT * FROM tasks WHERE id IN ({marks}) AND deleted_at IS NULL "
            f"ORDER BY {default_order()}",
            task_ids,
        )
        label_rows = await self.db.query_all(
            f"""
            SELECT tl.task_id AS linked_task_id, lb.*
            FROM task_labels tl
            JOIN labels lb ON lb.id = tl.label_id
            WHERE tl.task_id IN ({marks}) AND lb.deleted_at IS NULL
            ORDER BY lb.name COLLATE NOCASE
            """,
            task_ids,
        )

        labels: dict[str, list[Label]] = defaultdict(list)
        for row in label_rows:
            labels[row.pop("linked_task_id")].append(Label(**row))

        return [TaskWithLabels(**row, labels=labels[row["id"]]) for row in task_rows]

