"""Configuration models for the taskvault store.

This module defines the pydantic model persisted as ``config.json`` and
consumed by :class:`taskvault.adapters.sqlite.connection.Database`.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

JournalMode = Literal["WAL", "DELETE", "TRUNCATE", "PERSIST", "MEMORY", "OFF"]


class StoreConfig(BaseModel):
    """Store configuration.

    Attributes:
        db_path: Vault file; None means the platform data directory
        journal_mode: SQLite journal mode applied on open
        busy_timeout: Seconds SQLite waits on a locked database file
        operation_timeout: Per-statement deadline in seconds (None disables)
        lock_timeout: Seconds a caller may queue for the connection
        min_sort_gap: Smallest neighbour gap before subtasks are renumbered
        log_level: Level for the application logger
    """

    db_path: str | None = Field(default=None, description="Database file path")
    journal_mode: JournalMode = Field(default="WAL")
    busy_timeout: float = Field(default=30.0, ge=0)
    operation_timeout: float | None = Field(default=10.0, gt=0)
    lock_timeout: float = Field(default=30.0, gt=0)
    min_sort_gap: float = Field(default=1e-9, gt=0)
    log_level: str = Field(default="INFO")

    @field_validator("journal_mode", mode="before")
    @classmethod
    def _upper_journal_mode(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return value


class AppConfig(BaseModel):
    """Root of config.json."""

    store: StoreConfig = Field(default_factory=StoreConfig)
