"""SQLite implementation of the label repository."""

from __future__ import annotations

from typing import Any

from taskvault.adapters.sqlite.base_repository import SqliteEntityRepository
from taskvault.adapters.sqlite.utils import escape_like
from taskvault.errors import UniqueConstraintError
from taskvault.models import Label, LabelCreate, LabelUpdate, LabelWithCount


class SqliteLabelRepository(SqliteEntityRepository[Label, LabelCreate, LabelUpdate]):
    """SQLite implementation of label repository.

    Label names are unique among live labels, compared case-insensitively.
    The check runs before the write so the error names the offending value;
    the partial unique index backs it up.
    """

    table = "labels"
    entity = "Label"
    model = Label
    order_by = "name COLLATE NOCASE"
    link_column = "label_id"

    async def _ensure_name_free(self, name: str, exclude_id: str | None = None) -> None:
        query = (
            "SELECT id FROM labels WHERE name = ? COLLATE NOCASE AND deleted_at IS NULL"
        )
        params: list[Any] = [name]
        if exclude_id:
            query += " AND id != ?"
            params.append(exclude_id)

        if await self.db.query_first(query, params):
            raise UniqueConstraintError("Label", "name", name)

    async def _before_create(self, params: dict[str, Any]) -> dict[str, Any]:
        await self._ensure_name_free(params["name"])
        return params

    async def _before_update(self, current: Label, changes: dict[str, Any]) -> dict[str, Any]:
        if "name" in changes:
            await self._ensure_name_free(changes["name"], exclude_id=current.id)
        return changes

    async def _before_restore(self, current: Label) -> None:
        await self._ensure_name_free(current.name, exclude_id=current.id)

    async def get_by_name(self, name: str) -> Label | None:
        """Find a live label by name, ignoring case."""
        row = await self.db.query_first(
            "SELECT * FROM labels WHERE name = ? COLLATE NOCASE AND deleted_at IS NULL",
            (name,),
        )
        return Label(**row) if row else None

    async def search(self, prefix: str) -> list[Label]:
        """Search live labels by name prefix (for autocomplete)."""
        return await self._select(
            "deleted_at IS NULL AND name LIKE ? ESCAPE '\\'",
            (escape_like(prefix) + "%",),
        )

    async def get_all_with_task_counts(self) -> list[LabelWithCount]:
        """Live labels with the number of live tasks carrying each."""
        rows = await self.db.query_all(
            """
            SELECT lb.*, COUNT(t.id) AS task_count
            FROM labels lb
            LEFT JOIN task_labels tl ON tl.label_id = lb.id
            LEFT JOIN tasks t ON t.id = tl.task_id AND t.deleted_at IS NULL
            WHERE lb.deleted_at IS NULL
            GROUP BY lb.id
            ORDER BY lb.name COLLATE NOCASE
            """
        )
        return [LabelWithCount(**row) for row in rows]
