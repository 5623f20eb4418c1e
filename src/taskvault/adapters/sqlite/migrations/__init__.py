"""Database migration system for SQLite local vault."""

from .m001_initial_schema import initial_migration
from .m002_nullable_list_id import nullable_list_id_migration
from .m003_sync_indexes import sync_indexes_migration
from .runner import (
    Migration,
    MigrationRunner,
    get_current_version,
    run_migrations,
)

# Every shipped migration, in version order
ALL_MIGRATIONS: list[Migration] = [
    initial_migration,
    nullable_list_id_migration,
    sync_indexes_migration,
]

LATEST_VERSION = ALL_MIGRATIONS[-1].version

__all__ = [
    "ALL_MIGRATIONS",
    "LATEST_VERSION",
    "Migration",
    "MigrationRunner",
    "get_current_version",
    "run_migrations",
]
