"""Services module for taskvault - configuration layer."""

from .config_service import ConfigService, get_config_service

__all__ = [
    "ConfigService",
    "get_config_service",
]
