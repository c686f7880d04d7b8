from __future__ import annotations

from pathlib import Path

import pytest

from gh_notify_bridge.settings import Settings, SettingsError


def _clear_known_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in [
        "GITHUB_TOKEN",
        "STATE_FILE",
        "GITHUB_API_URL",
        "HOST",
        "PORT",
        "POLL_INTERVAL_SEC",
        "BOOTSTRAP_WINDOW_SEC",
        "REQUEST_TIMEOUT_SEC",
        "PUSH_TIMEOUT_SEC",
        "NOTIFICATIONS_PER_PAGE",
        "NOTIFICATIONS_MAX_PAGES",
        "TIMEZONE",
        "LOG_LEVEL",
    ]:
        # setenv first so values written by the dotenv loader are undone too.
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_from_env_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_known_env(monkeypatch)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_abc")

    settings = Settings.from_env(env_file=None)

    assert settings.github_token == "ghp_abc"
    assert settings.state_file == Path("./state.json")
    assert settings.github_api_url == "https://api.github.com"
    assert settings.host == "::"
    assert settings.port == 8080
    assert settings.poll_interval_sec == 30
    assert settings.bootstrap_window_sec == 60
    assert settings.notifications_per_page == 50
    assert settings.notifications_max_pages == 1
    assert settings.timezone == "UTC"
    assert settings.log_level == "INFO"


def test_from_env_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    _clear_known_env(monkeypatch)
    monkeypatch.setenv("GITHUB_TOKEN", "   ")

    with pytest.raises(SettingsError, match="GITHUB_TOKEN required"):
        Settings.from_env(env_file=None)


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _clear_known_env(monkeypatch)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_abc")
    monkeypatch.setenv("STATE_FILE", str(tmp_path / "bridge.json"))
    monkeypatch.setenv("GITHUB_API_URL", "https://ghe.example/api/v3/")
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("POLL_INTERVAL_SEC", "5")
    monkeypatch.setenv("BOOTSTRAP_WINDOW_SEC", "0")
    monkeypatch.setenv("NOTIFICATIONS_PER_PAGE", "100")
    monkeypatch.setenv("TIMEZONE", "Asia/Seoul")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env(env_file=None)

    assert settings.state_file == tmp_path / "bridge.json"
    assert settings.github_api_url == "https://ghe.example/api/v3"
    assert settings.port == 9090
    assert settings.poll_interval_sec == 5
    assert settings.bootstrap_window_sec == 0
    assert settings.notifications_per_page == 100
    assert settings.timezone == "Asia/Seoul"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    ("key", "value", "message"),
    [
        ("PORT", "abc", "PORT must be an integer"),
        ("PORT", "0", "PORT must be >= 1"),
        ("PORT", "70000", "PORT must be <= 65535"),
        ("POLL_INTERVAL_SEC", "0", "POLL_INTERVAL_SEC must be >= 1"),
        ("BOOTSTRAP_WINDOW_SEC", "-5", "BOOTSTRAP_WINDOW_SEC must be >= 0"),
        ("NOTIFICATIONS_PER_PAGE", "101", "NOTIFICATIONS_PER_PAGE must be <= 100"),
        ("GITHUB_API_URL", "ftp://example", "GITHUB_API_URL must be a valid http"),
        ("TIMEZONE", "Mars/Olympus", "TIMEZONE is not a valid IANA timezone"),
    ],
)
def test_from_env_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, key: str, value: str, message: str
) -> None:
    _clear_known_env(monkeypatch)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_abc")
    monkeypatch.setenv(key, value)

    with pytest.raises(SettingsError, match=message):
        Settings.from_env(env_file=None)


def test_from_env_loads_dotenv_without_overriding(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _clear_known_env(monkeypatch)
    monkeypatch.setenv("PORT", "7000")
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# local overrides\n"
        "export GITHUB_TOKEN='ghp_from_file'\n"
        'PORT="9999"\n'
        "POLL_INTERVAL_SEC=12\n"
        "not-a-pair\n",
        encoding="utf-8",
    )

    settings = Settings.from_env(env_file=env_file)

    assert settings.github_token == "ghp_from_file"
    assert settings.port == 7000
    assert settings.poll_interval_sec == 12
