from __future__ import annotations

import logging
import threading

from gh_notify_bridge.logging_utils import log_event
from gh_notify_bridge.observability import events
from gh_notify_bridge.repositories.config_store import ConfigSaveError
from gh_notify_bridge.repositories.state_models import PersistedConfig
from gh_notify_bridge.repositories.state_repository import ConfigStore


class AppState:
    """Process-wide state shared by the poller thread and request handlers.

    The persisted config is loaded once here and the in-memory copy is
    authoritative afterwards. Every mutation swaps in a new frozen
    ``PersistedConfig`` and writes it through to the store while holding the
    lock, so readers see either the old or the new config as a whole and
    concurrent writers cannot interleave on disk.
    """

    def __init__(
        self,
        store: ConfigStore,
        github_token: str,
        logger: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.github_token = github_token
        self.logger = logger or logging.getLogger("gh_notify_bridge.app_state")
        self.poll_lock = threading.Lock()
        self._lock = threading.Lock()
        self._config = store.load()

    def snapshot(self) -> PersistedConfig:
        with self._lock:
            return self._config

    def get_endpoint(self) -> str | None:
        return self.snapshot().endpoint

    def get_cursor(self) -> str | None:
        return self.snapshot().last_poll_cursor

    def set_endpoint(self, value: str) -> None:
        with self._lock:
            self._config = self._config.with_endpoint(value)
            self._persist_locked()
        self.logger.info(log_event(events.STATE_ENDPOINT_UPDATED, endpoint=value))

    def set_cursor(self, value: str) -> None:
        with self._lock:
            self._config = self._config.with_cursor(value)
            self._persist_locked()
        self.logger.debug(log_event(events.STATE_CURSOR_UPDATED, last_poll_cursor=value))

    def _persist_locked(self) -> None:
        try:
            self.store.save(self._config)
        except ConfigSaveError:
            # The store already logged the failure; memory stays authoritative.
            return
