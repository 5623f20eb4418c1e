"""Database schema definitions for the local SQLite vault.

Every primary entity carries the sync columns ``created_at``, ``updated_at``,
``version``, ``dirty`` and ``deleted_at``. There are no triggers: repositories
bump ``version``/``dirty``/``updated_at`` in the same statement
that performs the change.

The statements here describe schema version 1. Later versions live in their
migration modules.
"""

from __future__ import annotations

# Applied-version bookkeeping, owned by the migration runner
CREATE_SCHEMA_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    applied_at INTEGER NOT NULL
)
"""

# Lists table
CREATE_LISTS_TABLE = """
CREATE TABLE IF NOT EXISTS lists (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    color TEXT NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    deleted_at INTEGER NULL,
    version INTEGER NOT NULL DEFAULT 0,
    dirty INTEGER NOT NULL DEFAULT 1
)
"""

# Tasks table - list_id is mandatory in v1 (relaxed by migration 2)
CREATE_TASKS_TABLE = """
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    list_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT NULL,
    status TEXT NOT NULL CHECK(status IN ('todo','in_progress','blocked','done')),
    priority INTEGER NOT NULL CHECK(priority BETWEEN 0 AND 3),
    start_date INTEGER NULL,
    due_date INTEGER NULL,
    completed_at INTEGER NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    deleted_at INTEGER NULL,
    version INTEGER NOT NULL DEFAULT 0,
    dirty INTEGER NOT NULL DEFAULT 1,
    sort_order REAL NULL,
    FOREIGN KEY(list_id) REFERENCES lists(id) ON DELETE CASCADE
)
"""

# Labels table - name uniqueness is enforced by a partial index on live rows
CREATE_LABELS_TABLE = """
CREATE TABLE IF NOT EXISTS labels (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    color TEXT NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    deleted_at INTEGER NULL,
    version INTEGER NOT NULL DEFAULT 0,
    dirty INTEGER NOT NULL DEFAULT 1
)
"""

# Task-Label junction table (many-to-many, hard rows only)
CREATE_TASK_LABELS_TABLE = """
CREATE TABLE IF NOT EXISTS task_labels (
    task_id TEXT NOT NULL,
    label_id TEXT NOT NULL,
    PRIMARY KEY(task_id, label_id),
    FOREIGN KEY(task_id) REFERENCES tasks(id) ON DELETE CASCADE,
    FOREIGN KEY(label_id) REFERENCES labels(id) ON DELETE CASCADE
)
"""

# Subtasks table
CREATE_SUBTASKS_TABLE = """
CREATE TABLE IF NOT EXISTS subtasks (
    id TEXT PRIMARY KEY,
    task_id TEXT NOT NULL,
    title TEXT NOT NULL,
    done INTEGER NOT NULL DEFAULT 0 CHECK(done IN (0,1)),
    sort_order REAL NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    deleted_at INTEGER NULL,
    version INTEGER NOT NULL DEFAULT 0,
    dirty INTEGER NOT NULL DEFAULT 1,
    FOREIGN KEY(task_id) REFERENCES tasks(id) ON DELETE CASCADE
)
"""

# Tasks indexes
CREATE_TASK_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_list_status_prio_due ON tasks(list_id, status, priority, due_date)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(due_date)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_updated ON tasks(updated_at)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_dirty ON tasks(dirty)",
]

# Labels indexes
CREATE_LABEL_INDEXES = [
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_labels_name_live ON labels(name COLLATE NOCASE) WHERE deleted_at IS NULL",
]

# Junction and subtask indexes
CREATE_LINK_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_task_labels_label ON task_labels(label_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_labels_task ON task_labels(task_id)",
    "CREATE INDEX IF NOT EXISTS idx_subtasks_task ON subtasks(task_id)",
]

# All table creation statements in dependency order
ALL_TABLES = [
    CREATE_LISTS_TABLE,
    CREATE_TASKS_TABLE,
    CREATE_LABELS_TABLE,
    CREATE_TASK_LABELS_TABLE,
    CREATE_SUBTASKS_TABLE,
]

# All index creation statements
ALL_INDEXES = CREATE_TASK_INDEXES + CREATE_LABEL_INDEXES + CREATE_LINK_INDEXES

# Tables that carry the sync columns
ENTITY_TABLES = ("lists", "tasks", "labels", "subtasks")
