from __future__ import annotations

from typing import Protocol

import requests

from gh_notify_bridge.domain.models import PushEvent
from gh_notify_bridge.logging_utils import redact_sensitive_text


class PushDeliveryError(RuntimeError):
    """Raised when a single push attempt fails."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        last_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.last_error = last_error


class EventForwarder(Protocol):
    def send(self, endpoint: str, event: PushEvent) -> None: ...


class PushForwarder:
    """Best-effort delivery of one event to a UnifiedPush endpoint.

    Exactly one POST per call. There is no retry, queue or circuit breaker:
    a failure is reported to the caller and the event is dropped.
    """

    def __init__(
        self,
        timeout_sec: int = 10,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout_sec = timeout_sec
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def send(self, endpoint: str, event: PushEvent) -> None:
        try:
            response = self.session.post(
                endpoint,
                json=event.to_payload(),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_sec,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            raise PushDeliveryError(
                f"UP push error: HTTP {status_code}",
                status_code=status_code,
                last_error=exc,
            ) from exc
        except requests.RequestException as exc:
            raise PushDeliveryError(
                f"UP push error: {redact_sensitive_text(exc)}",
                last_error=exc,
            ) from exc
