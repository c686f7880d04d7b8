from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class PersistedConfig:
    endpoint: str | None = None
    last_poll_cursor: str | None = None

    def with_endpoint(self, endpoint: str) -> PersistedConfig:
        return replace(self, endpoint=endpoint)

    def with_cursor(self, cursor: str) -> PersistedConfig:
        return replace(self, last_poll_cursor=cursor)

    def to_dict(self) -> dict[str, str | None]:
        # Absent fields are written as null, never omitted.
        return {
            "endpoint": self.endpoint,
            "last_poll_cursor": self.last_poll_cursor,
        }
