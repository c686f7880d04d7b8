from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from gh_notify_bridge.services.github_api import DEFAULT_GITHUB_API_URL
from gh_notify_bridge.usecases.poll_cycle import DEFAULT_BOOTSTRAP_WINDOW_SEC

DEFAULT_STATE_FILE = "./state.json"
DEFAULT_HOST = "::"
DEFAULT_PORT = 8080
DEFAULT_POLL_INTERVAL_SEC = 30
MAX_NOTIFICATIONS_PER_PAGE = 100


class SettingsError(ValueError):
    """Raised when required environment settings are missing or malformed."""


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_dotenv_if_exists(env_file: Path) -> None:
    if not env_file.exists() or not env_file.is_file():
        return

    for raw_line in env_file.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue
        value = _strip_optional_quotes(value.strip())
        os.environ.setdefault(key, value)


def _parse_int_env(
    name: str,
    default: int,
    minimum: int = 0,
    maximum: int | None = None,
) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise SettingsError(f"{name} must be an integer. Received: {raw}") from exc
    if value < minimum:
        raise SettingsError(f"{name} must be >= {minimum}. Received: {value}")
    if maximum is not None and value > maximum:
        raise SettingsError(f"{name} must be <= {maximum}. Received: {value}")
    return value


def _parse_str_env(name: str, default: str) -> str:
    """Return the stripped value of ``name``, or ``default`` when unset or blank."""
    raw = os.getenv(name, "").strip()
    return raw if raw else default


def _parse_timezone_env(name: str, default: str) -> str:
    value = _parse_str_env(name, default)
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, KeyError, ValueError):
        raise SettingsError(f"{name} is not a valid IANA timezone name. Received: {value}")
    return value


def _parse_required_secret_env(name: str, hint: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise SettingsError(f"{name} required ({hint})")
    return value


def _validate_api_url(name: str, url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise SettingsError(f"{name} must be a valid http(s) URL with host. Received: {url}")
    return url.rstrip("/")


@dataclass(frozen=True)
class Settings:
    github_token: str
    state_file: Path = Path(DEFAULT_STATE_FILE)
    github_api_url: str = DEFAULT_GITHUB_API_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    poll_interval_sec: int = DEFAULT_POLL_INTERVAL_SEC
    bootstrap_window_sec: int = DEFAULT_BOOTSTRAP_WINDOW_SEC
    request_timeout_sec: int = 10
    push_timeout_sec: int = 10
    notifications_per_page: int = 50
    notifications_max_pages: int = 1
    timezone: str = "UTC"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: str | Path | None = ".env") -> Settings:
        if env_file:
            _load_dotenv_if_exists(Path(env_file))

        return cls(
            github_token=_parse_required_secret_env(
                "GITHUB_TOKEN",
                "with 'notifications' scope",
            ),
            state_file=Path(_parse_str_env("STATE_FILE", DEFAULT_STATE_FILE)),
            github_api_url=_validate_api_url(
                "GITHUB_API_URL",
                _parse_str_env("GITHUB_API_URL", DEFAULT_GITHUB_API_URL),
            ),
            host=_parse_str_env("HOST", DEFAULT_HOST),
            port=_parse_int_env("PORT", DEFAULT_PORT, minimum=1, maximum=65535),
            poll_interval_sec=_parse_int_env(
                "POLL_INTERVAL_SEC",
                DEFAULT_POLL_INTERVAL_SEC,
                minimum=1,
            ),
            bootstrap_window_sec=_parse_int_env(
                "BOOTSTRAP_WINDOW_SEC",
                DEFAULT_BOOTSTRAP_WINDOW_SEC,
                minimum=0,
            ),
            request_timeout_sec=_parse_int_env("REQUEST_TIMEOUT_SEC", 10, minimum=1),
            push_timeout_sec=_parse_int_env("PUSH_TIMEOUT_SEC", 10, minimum=1),
            notifications_per_page=_parse_int_env(
                "NOTIFICATIONS_PER_PAGE",
                50,
                minimum=1,
                maximum=MAX_NOTIFICATIONS_PER_PAGE,
            ),
            notifications_max_pages=_parse_int_env("NOTIFICATIONS_MAX_PAGES", 1, minimum=1),
            timezone=_parse_timezone_env("TIMEZONE", "UTC"),
            log_level=_parse_str_env("LOG_LEVEL", "INFO").upper(),
        )
