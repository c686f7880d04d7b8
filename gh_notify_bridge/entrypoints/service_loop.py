from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol

from gh_notify_bridge.logging_utils import log_event, redact_sensitive_text
from gh_notify_bridge.observability import events
from gh_notify_bridge.usecases.poll_cycle import CycleStats


class CycleProcessor(Protocol):
    def run_once(self) -> CycleStats: ...


def _is_fatal_cycle_exception(exc: Exception) -> bool:
    return isinstance(exc, MemoryError)


class BackgroundPoller:
    """Run poll cycles back to back on a dedicated thread.

    Each iteration runs one cycle, then sleeps for whatever is left of the
    interval. A cycle that overruns the interval is followed immediately by
    the next one; missed ticks are not queued, and cycles never overlap
    because the loop is strictly sequential.
    """

    def __init__(
        self,
        processor: CycleProcessor,
        interval_sec: float,
        logger: logging.Logger | None = None,
        *,
        sleep_fn: Callable[[float], None] = time.sleep,
        monotonic_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self.processor = processor
        self.interval_sec = interval_sec
        self.logger = logger or logging.getLogger("gh_notify_bridge.poller")
        self.sleep_fn = sleep_fn
        self.monotonic_fn = monotonic_fn
        self._thread: threading.Thread | None = None

    def run_cycle(self) -> float:
        """Run one cycle and return how long to sleep before the next one."""
        started = self.monotonic_fn()
        try:
            self.processor.run_once()
        except Exception as exc:
            if _is_fatal_cycle_exception(exc):
                self.logger.critical(
                    log_event(events.CYCLE_FATAL_ERROR, error=redact_sensitive_text(exc)),
                    exc_info=True,
                )
                raise
            self.logger.error(
                log_event(events.CYCLE_ITERATION_FAILED, error=redact_sensitive_text(exc)),
                exc_info=True,
            )

        elapsed = self.monotonic_fn() - started
        if elapsed >= self.interval_sec:
            self.logger.warning(
                log_event(
                    events.CYCLE_OVERRAN_INTERVAL,
                    elapsed_sec=round(elapsed, 3),
                    interval_sec=self.interval_sec,
                )
            )
            return 0.0
        return self.interval_sec - elapsed

    def run_forever(self, max_cycles: int | None = None) -> None:
        self.logger.info(log_event(events.POLLER_STARTED, interval_sec=self.interval_sec))
        completed = 0
        try:
            while max_cycles is None or completed < max_cycles:
                remaining = self.run_cycle()
                completed += 1
                if max_cycles is not None and completed >= max_cycles:
                    break
                if remaining > 0:
                    self.sleep_fn(remaining)
        finally:
            self.logger.info(log_event(events.POLLER_STOPPED, cycles=completed))

    def start(self) -> threading.Thread:
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._thread = threading.Thread(
            target=self.run_forever,
            name="poller",
            daemon=True,
        )
        self._thread.start()
        return self._thread


def start_poller(
    processor: CycleProcessor,
    interval_sec: float,
    logger: logging.Logger,
) -> BackgroundPoller:
    poller = BackgroundPoller(processor, interval_sec, logger.getChild("poller"))
    poller.start()
    return poller
