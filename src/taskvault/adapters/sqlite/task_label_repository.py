"""SQLite implementation of the task <-> label link table.

Link rows have no identity or sync columns of their own; they are plain
``(task_id, label_id)`` pairs that are inserted and physically removed.
"""

from __future__ import annotations

from taskvault.adapters.sqlite.base_repository import ensure_live
from taskvault.adapters.sqlite.connection import Database
from taskvault.models import Label, TaskLabel
from taskvault.repositories.repository import TaskLabelRepository


class SqliteTaskLabelRepository(TaskLabelRepository):
    """SQLite implementation of the task label links."""

    def __init__(self, db: Database):
        self.db = db

    async def add_to_task(self, task_id: str, label_id: str) -> bool:
        async with self.db.transaction():
            await ensure_live(self.db, "tasks", "Task", task_id, "add_to_task", "TaskLabel")
            await ensure_live(self.db, "labels", "Label", label_id, "add_to_task", "TaskLabel")
            inserted = await self.db.insert(
                "INSERT OR IGNORE INTO task_labels (task_id, label_id) VALUES (?, ?)",
                (task_id, label_id),
            )
            return inserted > 0

    async def remove_from_task(self, task_id: str, label_id: str) -> bool:
        """Remove one link. Returns whether a link existed."""
        removed = await self.db.modify(
            "DELETE FROM task_labels WHERE task_id = ? AND label_id = ?",
            (task_id, label_id),
        )
        return removed > 0

    async def set_task_labels(self, task_id: str, label_ids: list[str]) -> None:
        async with self.db.transaction():
            await ensure_live(self.db, "tasks", "Task", task_id, "set_task_labels", "TaskLabel")
            await self.db.modify("DELETE FROM task_labels WHERE task_id = ?", (task_id,))

            # dict.fromkeys keeps the first occurrence order
            for label_id in dict.fromkeys(label_ids):
                await ensure_live(
                    self.db, "labels", "Label", label_id, "set_task_labels", "TaskLabel"
                )
                await self.db.insert(
                    "INSERT OR IGNORE INTO task_labels (task_id, label_id) VALUES (?, ?)",
                    (task_id, label_id),
                )

    async def get_labels_for_task(self, task_id: str) -> list[Label]:
        """Live labels linked to a task, by name."""
        rows = await self.db.query_all(
            """
            SELECT lb.* FROM labels lb
            JOIN task_labels tl ON tl.label_id = lb.id
            WHERE tl.task_id = ? AND lb.deleted_at IS NULL
            ORDER BY lb.name COLLATE NOCASE
            """,
            (task_id,),
        )
        return [Label(**row) for row in rows]

    async def get_task_ids_for_label(self, label_id: str) -> list[str]:
        rows = await self.db.query_all(
            """
            SELECT tl.task_id FROM task_labels tl
            JOIN tasks t ON t.id = tl.task_id
            WHERE tl.label_id = ? AND t.deleted_at IS NULL
            ORDER BY tl.task_id
            """,
            (label_id,),
        )
        return [row["task_id"] for row in rows]

    async def count_for_label(self, label_id: str) -> int:
        """Number of links referencing a label, live or not."""
        return await self.db.scalar(
            "SELECT COUNT(*) FROM task_labels WHERE label_id = ?", (label_id,)
        )

    async def get_links_for_task(self, task_id: str) -> list[TaskLabel]:
        rows = await self.db.query_all(
            "SELECT task_id, label_id FROM task_labels WHERE task_id = ? ORDER BY label_id",
            (task_id,),
        )
        return [TaskLabel(**row) for row in rows]
