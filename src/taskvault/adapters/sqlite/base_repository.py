"""Shared SQLite implementation of the entity repository contract.

Concrete repositories only declare their table, model and canonical ordering,
and hook in entity rules (parent checks, uniqueness, derived columns).
"""

from __future__ import annotations

from typing import Any, ClassVar

from taskvault.adapters.sqlite.connection import Database
from taskvault.adapters.sqlite.utils import (
    build_update_clause,
    generate_uuid,
    now_ms,
    placeholders,
)
from taskvault.errors import ForeignKeyViolationError, NotFoundError, ValidationError
from taskvault.repositories.repository import CreateT, EntityRepository, ModelT, UpdateT

# Change tracking applied by every mutating statement
TOUCH = "updated_at = ?, version = version + 1, dirty = 1"


async def ensure_live(
    db: Database,
    table: str,
    entity: str,
    entity_id: str | None,
    operation: str,
    child: str | None = None,
) -> None:
    """Raise ForeignKeyViolationError unless ``entity_id`` names a live row."""
    row = await db.query_first(
        f"SELECT deleted_at FROM {table} WHERE id = ?", (entity_id,)
    )
    if row is None or row["deleted_at"] is not None:
        raise ForeignKeyViolationError(entity, str(entity_id), operation, child)


class SqliteEntityRepository(EntityRepository[ModelT, CreateT, UpdateT]):
    """Base class for SQLite entity repositories."""

    table: ClassVar[str]
    entity: ClassVar[str]
    model: ClassVar[type]
    order_by: ClassVar[str] = "created_at"
    # task_labels column referencing this entity, if any
    link_column: ClassVar[str | None] = None

    def __init__(self, db: Database):
        """Initialize repository.

        Args:
            db: Open (or lazily opened) vault database
        """
        self.db = db

    def _to_model(self, row: dict[str, Any]) -> ModelT:
        return self.model(**row)

    async def _fetch(self, entity_id: str, include_deleted: bool = False) -> ModelT | None:
        query = f"SELECT * FROM {self.table} WHERE id = ?"
        if not include_deleted:
            query += " AND deleted_at IS NULL"
        row = await self.db.query_first(query, (entity_id,))
        return self._to_model(row) if row else None

    async def _require(self, entity_id: str, operation: str) -> ModelT:
        item = await self._fetch(entity_id)
        if item is None:
            raise NotFoundError(self.entity, entity_id, operation)
        return item

    async def _select(self, where: str = "", params: tuple | list = ()) -> list[ModelT]:
        query = f"SELECT * FROM {self.table}"
        if where:
            query += f" WHERE {where}"
        query += f" ORDER BY {self.order_by}"
        rows = await self.db.query_all(query, params)
        return [self._to_model(row) for row in rows]

    # Hooks -----------------------------------------------------------------

    async def _before_create(self, params: dict[str, Any]) -> dict[str, Any]:
        return params

    async def _before_update(self, current: ModelT, changes: dict[str, Any]) -> dict[str, Any]:
        return changes

    async def _before_restore(self, current: ModelT) -> None:
        return None

    # Contract --------------------------------------------------------------

    async def create(self, data: CreateT) -> ModelT:
        async with self.db.transaction():
            params = await self._before_create(data.to_params())
            now = now_ms()
            row = {
                "id": generate_uuid(),
                **params,
                "created_at": now,
                "updated_at": now,
                "version": 0,
                "dirty": 1,
            }
            columns = ", ".join(row)
            await self.db.insert(
                f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders(len(row))})",
                list(row.values()),
            )
            return await self._require(row["id"], "create")

    async def update(self, entity_id: str, updates: UpdateT) -> ModelT:
        changes = updates.changes()
        async with self.db.transaction():
            current = await self._require(entity_id, "update")
            if not changes:
                return current

            changes = await self._before_update(current, changes)
            set_clause, params = build_update_clause(changes)
            await self.db.modify(
                f"UPDATE {self.table} SET {set_clause}, {TOUCH} "
                "WHERE id = ? AND deleted_at IS NULL",
                [*params, now_ms(), entity_id],
            )
            return await self._require(entity_id, "update")

    async def delete(self, entity_id: str) -> bool:
        now = now_ms()
        changed = await self.db.modify(
            f"UPDATE {self.table} SET deleted_at = ?, {TOUCH} "
            "WHERE id = ? AND deleted_at IS NULL",
            (now, now, entity_id),
        )
        return changed > 0

    async def restore(self, entity_id: str) -> bool:
        async with self.db.transaction():
            current = await self._fetch(entity_id, include_deleted=True)
            if current is None or current.deleted_at is None:
                return False

            await self._before_restore(current)
            changed = await self.db.modify(
                f"UPDATE {self.table} SET deleted_at = NULL, {TOUCH} "
                "WHERE id = ? AND deleted_at IS NOT NULL",
                (now_ms(), entity_id),
            )
            return changed > 0

    async def hard_delete(self, entity_id: str) -> bool:
        async with self.db.transaction():
            if self.link_column:
                await self.db.modify(
                    f"DELETE FROM task_labels WHERE {self.link_column} = ?", (entity_id,)
                )
            removed = await self.db.modify(
                f"DELETE FROM {self.table} WHERE id = ?", (entity_id,)
            )
            return removed > 0

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        return await self._fetch(entity_id)

    async def get_all(self, include_deleted: bool = False) -> list[ModelT]:
        return await self._select("" if include_deleted else "deleted_at IS NULL")

    async def get_dirty(self) -> list[ModelT]:
        rows = await self.db.query_all(
            f"SELECT * FROM {self.table} WHERE dirty = 1 ORDER BY updated_at ASC"
        )
        return [self._to_model(row) for row in rows]

    async def mark_clean(self, entity_id: str, version: int | None = None) -> bool:
        if version is not None and version < 0:
            raise ValidationError(f"version must be >= 0, got {version}")

        if version is None:
            changed = await self.db.modify(
                f"UPDATE {self.table} SET dirty = 0 WHERE id = ?", (entity_id,)
            )
        else:
            # A local edit newer than the acknowledged version keeps the row dirty
            changed = await self.db.modify(
                f"UPDATE {self.table} SET dirty = 0, version = ? WHERE id = ? AND version <= ?",
                (version, entity_id, version),
            )
        return changed > 0

    async def count(self, include_deleted: bool = False) -> int:
        query = f"SELECT COUNT(*) FROM {self.table}"
        if not include_deleted:
            query += " WHERE deleted_at IS NULL"
        return await self.db.scalar(query)
