"""Wire timestamp codec for the notifications API.

Wire timestamps are ISO-8601 UTC strings with second precision and a ``Z``
suffix (``2024-01-13T12:00:00Z``). Because the layout is fixed-width and
zero-padded, lexicographic order equals chronological order, which the poll
cycle relies on when comparing ``updated_at`` values as plain strings.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Final

WIRE_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%SZ"

Instant = datetime | int | float


def utc_now() -> datetime:
    return datetime.now(UTC)


def _as_utc_datetime(instant: Instant) -> datetime:
    if isinstance(instant, datetime):
        if instant.tzinfo is None:
            return instant.replace(tzinfo=UTC)
        return instant.astimezone(UTC)
    if isinstance(instant, bool) or not isinstance(instant, (int, float)):
        raise TypeError(f"unsupported instant type: {type(instant).__name__}")
    seconds = int(instant)
    if seconds < 0:
        raise ValueError(f"instant must not precede the unix epoch. Received: {instant}")
    return datetime(1970, 1, 1, tzinfo=UTC) + timedelta(seconds=seconds)


def to_wire(instant: Instant) -> str:
    """Render ``instant`` as a wire timestamp.

    Accepts a ``datetime`` (naive values are taken as UTC) or unix seconds.
    Sub-second precision is truncated, never rounded.
    """
    dt = _as_utc_datetime(instant).replace(microsecond=0)
    # strftime pads %Y to four digits on glibc only; build the year explicitly.
    return f"{dt.year:04d}-{dt.strftime('%m-%dT%H:%M:%S')}Z"


def cutoff(now: Instant, window_seconds: int | float) -> str:
    """Return ``to_wire(now - window_seconds)``."""
    if window_seconds < 0:
        raise ValueError(f"window_seconds must be >= 0. Received: {window_seconds}")
    if isinstance(now, datetime):
        return to_wire(_as_utc_datetime(now) - timedelta(seconds=window_seconds))
    return to_wire(max(0, int(now) - int(window_seconds)))


def parse_wire(value: object) -> datetime | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        dt = datetime.strptime(text, WIRE_FORMAT)
    except ValueError:
        return None
    return dt.replace(tzinfo=UTC)
