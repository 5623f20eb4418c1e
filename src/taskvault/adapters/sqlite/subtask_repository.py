"""SQLite implementation of the subtask repository."""

from __future__ import annotations

from typing import Any

from taskvault.adapters.sqlite import ordering
from taskvault.adapters.sqlite.base_repository import (
    TOUCH,
    SqliteEntityRepository,
    ensure_live,
)
from taskvault.adapters.sqlite.utils import now_ms
from taskvault.errors import NotFoundError, ValidationError
from taskvault.models import (
    Subtask,
    SubtaskCreate,
    SubtaskStats,
    SubtaskUpdate,
)

_ORDER = "sort_order IS NULL, sort_order, created_at"


class SqliteSubtaskRepository(SqliteEntityRepository[Subtask, SubtaskCreate, SubtaskUpdate]):
    """SQLite implementation of subtask repository.

    Subtasks form an ordered checklist under a task. Keys are fractional, see
    :mod:`taskvault.adapters.sqlite.ordering`.
    """

    table = "subtasks"
    entity = "Subtask"
    model = Subtask
    order_by = _ORDER

    @property
    def min_sort_gap(self) -> float:
        return self.db.config.min_sort_gap

    async def _before_create(self, params: dict[str, Any]) -> dict[str, Any]:
        await ensure_live(self.db, "tasks", "Task", params["task_id"], "create", "Subtask")
        return params

    async def _before_restore(self, current: Subtask) -> None:
        await ensure_live(self.db, "tasks", "Task", current.task_id, "restore", "Subtask")

    async def _siblings(self, task_id: str) -> list[Subtask]:
        return await self._select("task_id = ? AND deleted_at IS NULL", (task_id,))

    async def _tail_key(self, task_id: str) -> float | None:
        return await self.db.scalar(
            "SELECT MAX(sort_order) FROM subtasks WHERE task_id = ? AND deleted_at IS NULL",
            (task_id,),
        )

    async def add(self, task_id: str, title: str) -> Subtask:
        """Append a subtask after its live siblings."""
        async with self.db.transaction():
            await ensure_live(self.db, "tasks", "Task", task_id, "add", "Subtask")
            key = ordering.compute_key(None, None, await self._tail_key(task_id))
            return await self.create(
                SubtaskCreate(task_id=task_id, title=title, sort_order=key)
            )

    async def list_by_task(self, task_id: str) -> list[Subtask]:
        return await self._siblings(task_id)

    async def toggle_done(self, subtask_id: str) -> Subtask:
        """Flip the done flag.

        Raises:
            NotFoundError: If the subtask is absent or soft-deleted
        """
        async with self.db.transaction():
            changed = await self.db.modify(
                f"UPDATE subtasks SET done = 1 - done, {TOUCH} "
                "WHERE id = ? AND deleted_at IS NULL",
                (now_ms(), subtask_id),
            )
            if not changed:
                raise NotFoundError(self.entity, subtask_id, "toggle_done")
            return await self._require(subtask_id, "toggle_done")

    async def rename(self, subtask_id: str, title: str) -> Subtask:
        return await self.update(subtask_id, SubtaskUpdate(title=title))

    async def remove(self, subtask_id: str) -> bool:
        return await self.delete(subtask_id)

    async def get_stats(self, task_id: str) -> SubtaskStats:
        row = await self.db.query_first(
            """
            SELECT COUNT(*) AS total, COALESCE(SUM(done), 0) AS done
            FROM subtasks
            WHERE task_id = ? AND deleted_at IS NULL
            """,
            (task_id,),
        )
        return SubtaskStats(**row)

    # Ordering ----------------------------------------------------------------

    async def _renumber(self, task_id: str) -> int:
        siblings = await self._siblings(task_id)
        now = now_ms()
        changed = 0
        for subtask, key in zip(siblings, ordering.renumbered(len(siblings))):
            if subtask.sort_order == key:
                continue
            changed += await self.db.modify(
                f"UPDATE subtasks SET sort_order = ?, {TOUCH} WHERE id = ?",
                (key, now, subtask.id),
            )
        return changed

    async def rebalance(self, task_id: str) -> int:
        """Renumber a task's live subtasks 1.0, 2.0, ... in their current order.

        Returns:
            Number of subtasks whose key changed

        Raises:
            ForeignKeyViolationError: If the task is missing or deleted
        """
        async with self.db.transaction():
            await ensure_live(self.db, "tasks", "Task", task_id, "rebalance", "Subtask")
            return await self._renumber(task_id)

    def _neighbour_key(
        self, siblings: list[Subtask], neighbour_id: str | None
    ) -> float | None:
        if neighbour_id is None:
            return None
        for sibling in siblings:
            if sibling.id == neighbour_id:
                return sibling.sort_order
        raise NotFoundError(self.entity, neighbour_id, "move")

    async def move(
        self,
        subtask_id: str,
        before_id: str | None = None,
        after_id: str | None = None,
    ) -> Subtask:
        """Reposition a subtask among its siblings.

        Args:
            subtask_id: Subtask to move
            before_id: Sibling the subtask will precede
            after_id: Sibling the subtask will follow

        With neither neighbour the subtask moves to the tail.

        Raises:
            ValidationError: If a neighbour is the subtask itself
            NotFoundError: If the subtask or a neighbour is not a live sibling
        """
        if subtask_id in (before_id, after_id):
            raise ValidationError("A subtask cannot be moved relative to itself")
        if before_id is not None and before_id == after_id:
            raise ValidationError("before_id and after_id must name different subtasks")

        async with self.db.transaction():
            item = await self._require(subtask_id, "move")
            siblings = await self._siblings(item.task_id)
            if any(sibling.sort_order is None for sibling in siblings):
                await self._renumber(item.task_id)
                siblings = await self._siblings(item.task_id)

            key = self._key_for(item, siblings, before_id, after_id)
            if key is None:
                await self._renumber(item.task_id)
                siblings = await self._siblings(item.task_id)
                key = self._key_for(item, siblings, before_id, after_id)
            if key is None:
                raise ValidationError(
                    f"No room to place subtask {subtask_id} (min_sort_gap={self.min_sort_gap})"
                )

            await self.db.modify(
                f"UPDATE subtasks SET sort_order = ?, {TOUCH} WHERE id = ?",
                (key, now_ms(), subtask_id),
            )
            return await self._require(subtask_id, "move")

    def _key_for(
        self,
        item: Subtask,
        siblings: list[Subtask],
        before_id: str | None,
        after_id: str | None,
    ) -> float | None:
        """Computed key, or None when the neighbours are too close to split."""
        before = self._neighbour_key(siblings, before_id)
        after = self._neighbour_key(siblings, after_id)
        tail = max(
            (s.sort_order for s in siblings if s.id != item.id and s.sort_order is not None),
            default=None,
        )
        key = ordering.compute_key(before, after, tail)
        if ordering.fits(key, before, after, self.min_sort_gap):
            return key
        return None
