"""Repository abstraction layer for taskvault.

This module defines the abstract base classes (interfaces) for the vault's
repositories, following the hexagonal architecture (Ports & Adapters) pattern.

Every primary entity (lists, tasks, labels, subtasks) shares one contract:
create, partial update, soft delete and restore, hard delete, lookups, and the
dirty-tracking pair consumed by a synchronizer. The SQLite adapter implements
them; a different backend would only need to honour the same contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel

from taskvault.models import Label

ModelT = TypeVar("ModelT", bound=BaseModel)
CreateT = TypeVar("CreateT", bound=BaseModel)
UpdateT = TypeVar("UpdateT", bound=BaseModel)


class EntityRepository(ABC, Generic[ModelT, CreateT, UpdateT]):
    """Abstract base class for synced entity persistence.

    Mutations keep the sync columns consistent: every change bumps
    ``version``, sets ``dirty`` and refreshes ``updated_at`` in the same
    statement that performs it.
    """

    @abstractmethod
    async def create(self, data: CreateT) -> ModelT:
        """Insert a new row.

        Args:
            data: Typed create parameters

        Returns:
            The stored row with ``version = 0`` and ``dirty = True``

        Raises:
            ForeignKeyViolationError: If a referenced parent is missing or deleted
            UniqueConstraintError: If a uniqueness rule would be violated
        """
        raise NotImplementedError("EntityRepository.create() must be implemented by adapter")

    @abstractmethod
    async def update(self, entity_id: str, updates: UpdateT) -> ModelT:
        """Apply a partial update.

        Args:
            entity_id: Row identifier
            updates: Only the fields explicitly set are written

        Returns:
            The updated row (unchanged, without a write, if nothing was set)

        Raises:
            NotFoundError: If the row is absent or soft-deleted
        """
        raise NotImplementedError("EntityRepository.update() must be implemented by adapter")

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """Soft-delete a row. Returns True only if a live row was deleted."""
        raise NotImplementedError("EntityRepository.delete() must be implemented by adapter")

    @abstractmethod
    async def restore(self, entity_id: str) -> bool:
        """Undo a soft delete. Returns True only if a deleted row was restored."""
        raise NotImplementedError("EntityRepository.restore() must be implemented by adapter")

    @abstractmethod
    async def hard_delete(self, entity_id: str) -> bool:
        """Physically remove a row together with its link rows."""
        raise NotImplementedError(
            "EntityRepository.hard_delete() must be implemented by adapter"
        )

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> ModelT | None:
        """Return the live row, or None if absent or soft-deleted."""
        raise NotImplementedError("EntityRepository.get_by_id() must be implemented by adapter")

    @abstractmethod
    async def get_all(self, include_deleted: bool = False) -> list[ModelT]:
        """Return rows in the entity's canonical order."""
        raise NotImplementedError("EntityRepository.get_all() must be implemented by adapter")

    @abstractmethod
    async def get_dirty(self) -> list[ModelT]:
        """Return rows awaiting upload, soft-deleted ones included, oldest change first."""
        raise NotImplementedError("EntityRepository.get_dirty() must be implemented by adapter")

    @abstractmethod
    async def mark_clean(self, entity_id: str, version: int | None = None) -> bool:
        """Clear the dirty flag, optionally pinning the server-acknowledged version.

        Args:
            entity_id: Row identifier
            version: Server-acknowledged version, or None to keep the current one.
                A row whose version is already higher has local edits the
                acknowledgement does not cover and stays dirty.

        Returns:
            True if a row was affected

        Raises:
            ValidationError: If version is negative
        """
        raise NotImplementedError("EntityRepository.mark_clean() must be implemented by adapter")

    @abstractmethod
    async def count(self, include_deleted: bool = False) -> int:
        raise NotImplementedError("EntityRepository.count() must be implemented by adapter")


class TaskLabelRepository(ABC):
    """Abstract base class for the task <-> label many-to-many links."""

    @abstractmethod
    async def add_to_task(self, task_id: str, label_id: str) -> bool:
        """Link a label to a task.

        Returns:
            True if a new link was created, False if it already existed

        Raises:
            ForeignKeyViolationError: If either endpoint is missing or deleted
        """
        raise NotImplementedError(
            "TaskLabelRepository.add_to_task() must be implemented by adapter"
        )

    @abstractmethod
    async def remove_from_task(self, task_id: str, label_id: str) -> bool:
        raise NotImplementedError(
            "TaskLabelRepository.remove_from_task() must be implemented by adapter"
        )

    @abstractmethod
    async def set_task_labels(self, task_id: str, label_ids: list[str]) -> None:
        """Replace a task's label set atomically.

        Raises:
            ForeignKeyViolationError: If the task or any label is missing or
                deleted; the previous link set is left untouched
        """
        raise NotImplementedError(
            "TaskLabelRepository.set_task_labels() must be implemented by adapter"
        )

    @abstractmethod
    async def get_labels_for_task(self, task_id: str) -> list[Label]:
        raise NotImplementedError(
            "TaskLabelRepository.get_labels_for_task() must be implemented by adapter"
        )
