from __future__ import annotations

import json
import logging
from contextlib import suppress
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from gh_notify_bridge.logging_utils import log_event
from gh_notify_bridge.observability import events
from gh_notify_bridge.repositories.state_models import PersistedConfig

LEGACY_CURSOR_KEY = "last_poll"


class ConfigLoadError(RuntimeError):
    """Raised when the persisted config cannot be read or decoded."""


class ConfigSaveError(RuntimeError):
    """Raised when the persisted config cannot be written durably."""

    def __init__(self, message: str, *, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.last_error = last_error


def _optional_str(value: object) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


class JsonConfigStore:
    def __init__(
        self,
        file_path: Path,
        logger: logging.Logger | None = None,
        *,
        backup_corrupted: bool = True,
    ) -> None:
        self.file_path = Path(file_path)
        self.logger = logger or logging.getLogger("gh_notify_bridge.state")
        self.backup_corrupted = backup_corrupted

    def load(self) -> PersistedConfig:
        try:
            raw = self._read_raw()
        except ConfigLoadError:
            return PersistedConfig()
        if raw is None:
            return PersistedConfig()

        config = self._normalize(raw)
        self.logger.info(
            log_event(
                events.STATE_LOADED,
                file=str(self.file_path),
                endpoint_registered=config.endpoint is not None,
                last_poll_cursor=config.last_poll_cursor,
            )
        )
        return config

    def _read_raw(self) -> Any:
        if not self.file_path.exists():
            return None

        try:
            with self.file_path.open("r", encoding="utf-8") as file:
                return json.load(file)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            backup_path = self._backup_corrupted_file() if self.backup_corrupted else None
            self.logger.error(
                log_event(
                    events.STATE_INVALID_JSON,
                    file=str(self.file_path),
                    backup=str(backup_path) if backup_path is not None else None,
                    error=str(exc),
                )
            )
            raise ConfigLoadError(f"invalid JSON in {self.file_path}") from exc
        except OSError as exc:
            self.logger.error(
                log_event(
                    events.STATE_READ_FAILED,
                    file=str(self.file_path),
                    error=str(exc),
                )
            )
            raise ConfigLoadError(f"failed to read {self.file_path}") from exc

    def _backup_corrupted_file(self) -> Path | None:
        timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        backup_path = self.file_path.with_name(f"{self.file_path.name}.broken-{timestamp}")
        try:
            self.file_path.replace(backup_path)
            return backup_path
        except OSError as exc:
            self.logger.error(
                log_event(
                    events.STATE_BACKUP_FAILED,
                    file=str(self.file_path),
                    error=str(exc),
                )
            )
            return None

    def _normalize(self, raw: Any) -> PersistedConfig:
        if not isinstance(raw, dict):
            self.logger.warning(
                log_event(
                    events.STATE_INVALID_SHAPE,
                    file=str(self.file_path),
                    type=type(raw).__name__,
                )
            )
            return PersistedConfig()

        cursor = raw.get("last_poll_cursor")
        if "last_poll_cursor" not in raw and LEGACY_CURSOR_KEY in raw:
            cursor = raw.get(LEGACY_CURSOR_KEY)
            self.logger.info(
                log_event(
                    events.STATE_LEGACY_KEY_MIGRATED,
                    file=str(self.file_path),
                    legacy_key=LEGACY_CURSOR_KEY,
                )
            )
        return PersistedConfig(
            endpoint=_optional_str(raw.get("endpoint")),
            last_poll_cursor=_optional_str(cursor),
        )

    def save(self, config: PersistedConfig) -> None:
        temp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("w", encoding="utf-8") as file:
                json.dump(config.to_dict(), file, ensure_ascii=False, indent=2)
                file.write("\n")
            temp_path.replace(self.file_path)
        except OSError as exc:
            with suppress(OSError):
                temp_path.unlink(missing_ok=True)
            self.logger.error(
                log_event(
                    events.STATE_PERSIST_FAILED,
                    file=str(self.file_path),
                    temp_file=str(temp_path),
                    error=str(exc),
                )
            )
            raise ConfigSaveError(
                f"failed to persist config to {self.file_path}",
                last_error=exc,
            ) from exc
