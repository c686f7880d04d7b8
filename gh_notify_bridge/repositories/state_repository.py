from __future__ import annotations

from typing import Protocol

from gh_notify_bridge.repositories.state_models import PersistedConfig


class ConfigStore(Protocol):
    def load(self) -> PersistedConfig:
        ...

    def save(self, config: PersistedConfig) -> None:
        ...
