"""Configuration service for the taskvault store.

This module provides the ConfigService class, the single source of truth for
configuration. It handles:

- Loading and saving config.json
- Creating a default config file on first run
- Reading and updating individual store settings
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from platformdirs import user_config_dir
from pydantic import ValidationError as PydanticValidationError

from taskvault.errors import ValidationError
from taskvault.models.config_models import AppConfig, StoreConfig


class ConfigService:
    """Service for managing application configuration."""

    def __init__(self, config_dir: str | Path | None = None):
        """Initialize the config service.

        Args:
            config_dir: Directory holding config.json; defaults to the
                platform config directory
        """
        self.config_dir = (
            Path(config_dir) if config_dir is not None else Path(user_config_dir("taskvault"))
        )
        self.config_path = self.config_dir / "config.json"
        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def store(self) -> StoreConfig:
        return self.config.store

    def load_config(self) -> AppConfig:
        """Load configuration from disk, creating defaults on first run."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # Expected on first run
            self._config = AppConfig()
            self.save_config()
        except Exception as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to disk (owner read/write only)."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4))
            self.config_path.chmod(0o600)
        except Exception as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def reset_config(self) -> AppConfig:
        """Reset configuration to defaults."""
        self._config = AppConfig()
        self.save_config()
        return self._config

    def get(self, key: str):
        """Get one store setting by name."""
        if key not in StoreConfig.model_fields:
            raise ValidationError(f"Unknown setting: {key}")
        return getattr(self.store, key)

    def set(self, key: str, value) -> StoreConfig:
        """Validate and persist one store setting."""
        if key not in StoreConfig.model_fields:
            raise ValidationError(f"Unknown setting: {key}")

        data = self.store.model_dump()
        data[key] = value
        try:
            store = StoreConfig.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid value for {key}: {e.errors()[0]['msg']}") from e

        self._config = self.config.model_copy(update={"store": store})
        self.save_config()
        return store


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
