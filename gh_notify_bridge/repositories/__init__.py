"""Data access layer."""
from gh_notify_bridge.repositories.config_store import (
    ConfigLoadError,
    ConfigSaveError,
    JsonConfigStore,
)
from gh_notify_bridge.repositories.state_models import PersistedConfig
from gh_notify_bridge.repositories.state_repository import ConfigStore

__all__ = [
    "ConfigLoadError",
    "ConfigSaveError",
    "ConfigStore",
    "JsonConfigStore",
    "PersistedConfig",
]
