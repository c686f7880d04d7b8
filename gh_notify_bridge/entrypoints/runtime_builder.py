from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from gh_notify_bridge.app_state import AppState
from gh_notify_bridge.logging_utils import log_event, setup_logging
from gh_notify_bridge.observability import events
from gh_notify_bridge.repositories.config_store import JsonConfigStore
from gh_notify_bridge.services.github_api import GitHubNotificationsClient
from gh_notify_bridge.services.push_forwarder import PushForwarder
from gh_notify_bridge.settings import Settings
from gh_notify_bridge.usecases.poll_cycle import PollCycleUseCase


@dataclass(frozen=True)
class ServiceRuntime:
    settings: Settings
    logger: logging.Logger
    state: AppState
    fetcher: GitHubNotificationsClient
    forwarder: PushForwarder
    processor: PollCycleUseCase


def build_runtime(
    settings: Settings,
    *,
    setup_logging_fn: Callable[..., logging.Logger] = setup_logging,
    config_store_factory: Callable[..., JsonConfigStore] = JsonConfigStore,
    fetcher_factory: Callable[..., GitHubNotificationsClient] = GitHubNotificationsClient,
    forwarder_factory: Callable[..., PushForwarder] = PushForwarder,
    processor_factory: Callable[..., PollCycleUseCase] = PollCycleUseCase,
) -> ServiceRuntime:
    logger = setup_logging_fn(settings.log_level, settings.timezone)
    store = config_store_factory(
        file_path=settings.state_file,
        logger=logger.getChild("state"),
    )
    state = AppState(
        store=store,
        github_token=settings.github_token,
        logger=logger.getChild("app_state"),
    )
    fetcher = fetcher_factory(
        token=state.github_token,
        api_url=settings.github_api_url,
        timeout_sec=settings.request_timeout_sec,
        per_page=settings.notifications_per_page,
        max_pages=settings.notifications_max_pages,
        logger=logger.getChild("github_api"),
    )
    forwarder = forwarder_factory(timeout_sec=settings.push_timeout_sec)
    processor = processor_factory(
        state=state,
        fetcher=fetcher,
        forwarder=forwarder,
        bootstrap_window_sec=settings.bootstrap_window_sec,
        logger=logger.getChild("processor"),
    )
    return ServiceRuntime(
        settings=settings,
        logger=logger,
        state=state,
        fetcher=fetcher,
        forwarder=forwarder,
        processor=processor,
    )


def log_startup(runtime: ServiceRuntime) -> None:
    settings = runtime.settings
    runtime.logger.info(
        log_event(
            events.STARTUP_READY,
            state_file=str(settings.state_file),
            github_api_url=settings.github_api_url,
            host=settings.host,
            port=settings.port,
            poll_interval_sec=settings.poll_interval_sec,
            bootstrap_window_sec=settings.bootstrap_window_sec,
            notifications_per_page=settings.notifications_per_page,
            notifications_max_pages=settings.notifications_max_pages,
        )
    )
    endpoint = runtime.state.get_endpoint()
    if endpoint is None:
        runtime.logger.info(log_event(events.STARTUP_ENDPOINT_MISSING))
        return
    runtime.logger.info(log_event(events.STARTUP_ENDPOINT_REGISTERED, endpoint=endpoint))


def close_runtime_resources(runtime: ServiceRuntime) -> None:
    for resource in (runtime.fetcher, runtime.forwarder):
        close_fn = getattr(resource, "close", None)
        if not callable(close_fn):
            continue
        try:
            close_fn()
        except Exception:
            # Best-effort close.
            continue
