from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

import uvicorn
from fastapi import FastAPI

from gh_notify_bridge.entrypoints.http_api import create_app
from gh_notify_bridge.entrypoints.runtime_builder import (
    ServiceRuntime,
    build_runtime,
    close_runtime_resources,
    log_startup,
)
from gh_notify_bridge.entrypoints.service_loop import BackgroundPoller, start_poller
from gh_notify_bridge.logging_utils import log_event, redact_sensitive_text, setup_logging
from gh_notify_bridge.observability import events
from gh_notify_bridge.repositories.config_store import JsonConfigStore
from gh_notify_bridge.settings import Settings, SettingsError
from gh_notify_bridge.usecases.poll_cycle import CYCLE_STATUS_FETCH_FAILED


def serve_http(app: FastAPI, settings: Settings) -> None:
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=False,
    )


def _load_settings(
    settings_from_env: Callable[..., Settings],
    setup_logging_fn: Callable[..., logging.Logger],
) -> Settings | None:
    bootstrap_logger = setup_logging_fn()
    try:
        return settings_from_env()
    except SettingsError as exc:
        bootstrap_logger.critical(
            log_event(events.STARTUP_INVALID_CONFIG, error=redact_sensitive_text(exc))
        )
        return None


def run_service(
    *,
    settings_from_env: Callable[..., Settings] = Settings.from_env,
    setup_logging_fn: Callable[..., logging.Logger] = setup_logging,
    build_runtime_fn: Callable[[Settings], ServiceRuntime] = build_runtime,
    log_startup_fn: Callable[[ServiceRuntime], None] = log_startup,
    start_poller_fn: Callable[..., BackgroundPoller] = start_poller,
    serve_fn: Callable[[FastAPI, Settings], None] = serve_http,
) -> int:
    settings = _load_settings(settings_from_env, setup_logging_fn)
    if settings is None:
        return 1

    runtime = build_runtime_fn(settings)
    log_startup_fn(runtime)
    start_poller_fn(runtime.processor, settings.poll_interval_sec, runtime.logger)
    try:
        serve_fn(create_app(runtime), settings)
    except KeyboardInterrupt:
        runtime.logger.info(log_event(events.SHUTDOWN_INTERRUPT))
    except Exception as exc:  # pragma: no cover
        runtime.logger.critical(
            log_event(events.SHUTDOWN_UNEXPECTED_ERROR, error=redact_sensitive_text(exc)),
            exc_info=True,
        )
        return 1
    finally:
        close_runtime_resources(runtime)
    return 0


def poll_once(
    *,
    settings_from_env: Callable[..., Settings] = Settings.from_env,
    setup_logging_fn: Callable[..., logging.Logger] = setup_logging,
    build_runtime_fn: Callable[[Settings], ServiceRuntime] = build_runtime,
) -> int:
    settings = _load_settings(settings_from_env, setup_logging_fn)
    if settings is None:
        return 1

    runtime = build_runtime_fn(settings)
    try:
        stats = runtime.processor.run_once()
    finally:
        close_runtime_resources(runtime)
    return 1 if stats.status == CYCLE_STATUS_FETCH_FAILED else 0


def show_state(
    state_file: str | Path,
    *,
    stdout: TextIO | None = None,
    setup_logging_fn: Callable[..., logging.Logger] = setup_logging,
) -> int:
    logger = setup_logging_fn()
    store = JsonConfigStore(
        Path(state_file),
        logger=logger.getChild("state"),
        backup_corrupted=False,
    )
    config = store.load()
    out = stdout or sys.stdout
    out.write(json.dumps(config.to_dict(), ensure_ascii=False, indent=2) + "\n")
    return 0
