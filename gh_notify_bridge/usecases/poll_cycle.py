from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Final

from gh_notify_bridge.app_state import AppState
from gh_notify_bridge.domain import timestamps
from gh_notify_bridge.domain.message_builder import build_push_event
from gh_notify_bridge.logging_utils import log_event, redact_sensitive_text
from gh_notify_bridge.observability import events
from gh_notify_bridge.services.github_api import GitHubApiError, NotificationFetcher
from gh_notify_bridge.services.push_forwarder import EventForwarder, PushDeliveryError

DEFAULT_BOOTSTRAP_WINDOW_SEC: Final[int] = 60

CYCLE_STATUS_COMPLETED: Final[str] = "completed"
CYCLE_STATUS_NO_ENDPOINT: Final[str] = "no_endpoint"
CYCLE_STATUS_FETCH_FAILED: Final[str] = "fetch_failed"


@dataclass
class CycleStats:
    status: str = CYCLE_STATUS_COMPLETED
    first_poll: bool = False
    fetched: int = 0
    unread: int = 0
    forwarded: int = 0
    forward_failures: int = 0
    cutoff_skipped: int = 0
    cursor_before: str | None = None
    cursor_after: str | None = None


class PollCycleUseCase:
    """One poll/filter/push pass over the notification source.

    The cursor is the largest ``updated_at`` among unread records examined in
    the cycle, including those held back by the bootstrap cutoff. Delivery is
    best-effort and does not gate cursor advancement. Records are not
    deduplicated by id across cycles; the ``since`` filter at the source is
    the only boundary, so a record sitting exactly on the cursor may be
    delivered again.
    """

    def __init__(
        self,
        state: AppState,
        fetcher: NotificationFetcher,
        forwarder: EventForwarder,
        bootstrap_window_sec: int = DEFAULT_BOOTSTRAP_WINDOW_SEC,
        logger: logging.Logger | None = None,
    ) -> None:
        self.state = state
        self.fetcher = fetcher
        self.forwarder = forwarder
        self.bootstrap_window_sec = bootstrap_window_sec
        self.logger = logger or logging.getLogger("gh_notify_bridge.processor")

    def run_once(self, now: datetime | None = None) -> CycleStats:
        # Overlapping manual and scheduled cycles would forward the same batch twice.
        with self.state.poll_lock:
            return self._run_cycle(now or timestamps.utc_now())

    def _run_cycle(self, now: datetime) -> CycleStats:
        endpoint = self.state.get_endpoint()
        if endpoint is None:
            self.logger.info(log_event(events.CYCLE_SKIPPED_NO_ENDPOINT))
            return CycleStats(status=CYCLE_STATUS_NO_ENDPOINT)

        cursor = self.state.get_cursor()
        stats = CycleStats(first_poll=cursor is None, cursor_before=cursor, cursor_after=cursor)
        cutoff_time: str | None = None
        if stats.first_poll:
            cutoff_time = timestamps.cutoff(now, self.bootstrap_window_sec)

        self.logger.info(
            log_event(
                events.CYCLE_START,
                since=cursor,
                first_poll=stats.first_poll,
                cutoff=cutoff_time,
            )
        )

        try:
            notifications = self.fetcher.fetch_notifications(since=cursor)
        except GitHubApiError as exc:
            stats.status = CYCLE_STATUS_FETCH_FAILED
            self.logger.error(
                log_event(
                    events.CYCLE_FETCH_FAILED,
                    code=exc.code,
                    status_code=exc.status_code,
                    error=redact_sensitive_text(exc),
                )
            )
            return stats

        stats.fetched = len(notifications)
        latest_timestamp: str | None = None
        for notification in notifications:
            if not notification.unread:
                continue
            stats.unread += 1

            # Wire timestamps sort lexicographically; ties keep the first value.
            if latest_timestamp is None or notification.updated_at > latest_timestamp:
                latest_timestamp = notification.updated_at

            if cutoff_time is not None and notification.updated_at < cutoff_time:
                stats.cutoff_skipped += 1
                continue

            event = build_push_event(notification)
            try:
                self.forwarder.send(endpoint, event)
            except PushDeliveryError as exc:
                stats.forward_failures += 1
                self.logger.error(
                    log_event(
                        events.PUSH_FAILED,
                        id=event.id,
                        repo=event.repo,
                        status_code=exc.status_code,
                        error=redact_sensitive_text(exc),
                    )
                )
                continue

            stats.forwarded += 1
            self.logger.info(
                log_event(
                    events.PUSH_SENT,
                    id=event.id,
                    repo=event.repo,
                    title=notification.subject.title,
                )
            )

        if latest_timestamp is not None:
            # The cursor never moves backwards, even if the source ignores `since`.
            if cursor is None or latest_timestamp > cursor:
                self.state.set_cursor(latest_timestamp)
                stats.cursor_after = latest_timestamp
            if stats.first_poll and stats.cutoff_skipped > 0:
                self.logger.info(
                    log_event(
                        events.CYCLE_FIRST_POLL_SKIPPED,
                        skipped=stats.cutoff_skipped,
                        cutoff=cutoff_time,
                    )
                )

        self.logger.info(log_event(events.CYCLE_COMPLETE, **asdict(stats)))
        return stats
