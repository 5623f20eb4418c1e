"""Error taxonomy for the taskvault persistence layer.

Every error raised by the store, the migration engine and the repositories
derives from :class:`TaskVaultError`, so callers can catch the whole family at
the boundary while still discriminating on the concrete type.
"""

from __future__ import annotations


class TaskVaultError(Exception):
    """Base class for all taskvault errors."""


class NotFoundError(TaskVaultError):
    """Raised when an id is absent or soft-deleted where a live row is required."""

    def __init__(self, entity: str, entity_id: str, operation: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        self.operation = operation
        where = f" during {operation}" if operation else ""
        super().__init__(f"{entity} not found{where}: {entity_id}")


class ForeignKeyViolationError(NotFoundError):
    """Raised when a referenced parent row is missing or soft-deleted."""

    def __init__(
        self,
        entity: str,
        entity_id: str,
        operation: str | None = None,
        child: str | None = None,
    ):
        self.child = child
        super().__init__(entity, entity_id, operation)
        if child:
            self.args = (f"{self.args[0]} (referenced by {child})",)


class UniqueConstraintError(TaskVaultError):
    """Raised when a name-type uniqueness rule would be violated."""

    def __init__(self, entity: str, field: str, value: object):
        self.entity = entity
        self.field = field
        self.value = value
        if value is None:
            super().__init__(f"{entity} with this {field} already exists")
        else:
            super().__init__(f"{entity} with {field} '{value}' already exists")


class ValidationError(TaskVaultError, ValueError):
    """Raised for arguments that are well-typed but semantically invalid."""


class TransactionError(TaskVaultError):
    """Raised when COMMIT (or BEGIN) fails."""


class StoreConnectionError(TaskVaultError):
    """Raised when the database is used before init() or init() fails."""


class DatabaseError(TaskVaultError):
    """An engine error wrapped together with the offending statement."""

    def __init__(self, message: str, statement: str | None = None):
        self.statement = statement
        if statement:
            message = f"{message} [statement: {' '.join(statement.split())}]"
        super().__init__(message)


class OperationTimeoutError(DatabaseError):
    """Raised when a statement or lock acquisition exceeds its deadline."""


class MigrationError(TaskVaultError):
    """Raised when a migration or rollback step fails."""

    def __init__(self, version: int, message: str):
        self.version = version
        super().__init__(message)
