"""Repository interfaces for taskvault."""

from taskvault.repositories.repository import EntityRepository, TaskLabelRepository

__all__ = [
    "EntityRepository",
    "TaskLabelRepository",
]
