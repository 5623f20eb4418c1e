"""SQLite implementation of the task list repository."""

from __future__ import annotations

from taskvault.adapters.sqlite.base_repository import SqliteEntityRepository
from taskvault.models import TaskList, TaskListCreate, TaskListUpdate, TaskListWithCounts


class SqliteListRepository(SqliteEntityRepository[TaskList, TaskListCreate, TaskListUpdate]):
    """SQLite implementation of list repository.

    Lists are returned newest first.
    """

    table = "lists"
    entity = "List"
    model = TaskList
    order_by = "created_at DESC"

    async def get_all_with_task_counts(self) -> list[TaskListWithCounts]:
        """Live lists with the number of live tasks and how many are done."""
        rows = await self.db.query_all(
            """
            SELECT l.*,
                   COUNT(t.id) AS task_count,
                   COALESCE(SUM(CASE WHEN t.status = 'done' THEN 1 ELSE 0 END), 0)
                       AS completed_count
            FROM lists l
            LEFT JOIN tasks t ON t.list_id = l.id AND t.deleted_at IS NULL
            WHERE l.deleted_at IS NULL
            GROUP BY l.id
            ORDER BY l.created_at DESC
            """
        )
        return [TaskListWithCounts(**row) for row in rows]
