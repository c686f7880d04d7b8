from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _require_str(payload: dict[str, Any], key: str, *, context: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValueError(f"{context}.{key} must be a string. Received: {value!r}")
    return value


def _require_dict(payload: dict[str, Any], key: str, *, context: str) -> dict[str, Any]:
    value = payload.get(key)
    if not isinstance(value, dict):
        raise ValueError(f"{context}.{key} must be an object. Received: {value!r}")
    return value


@dataclass(frozen=True)
class Subject:
    title: str
    kind: str
    url: str | None = None


@dataclass(frozen=True)
class Repository:
    full_name: str


@dataclass(frozen=True)
class NotificationRecord:
    id: str
    unread: bool
    reason: str
    updated_at: str
    subject: Subject
    repository: Repository

    @classmethod
    def from_api(cls, payload: object) -> NotificationRecord:
        if not isinstance(payload, dict):
            raise ValueError(f"notification must be an object. Received: {payload!r}")

        unread = payload.get("unread")
        if not isinstance(unread, bool):
            raise ValueError(f"notification.unread must be a boolean. Received: {unread!r}")

        subject_raw = _require_dict(payload, "subject", context="notification")
        repository_raw = _require_dict(payload, "repository", context="notification")
        subject_url = subject_raw.get("url")
        return cls(
            id=_require_str(payload, "id", context="notification"),
            unread=unread,
            reason=_require_str(payload, "reason", context="notification"),
            updated_at=_require_str(payload, "updated_at", context="notification"),
            subject=Subject(
                title=_require_str(subject_raw, "title", context="notification.subject"),
                # GitHub names this field "type".
                kind=_require_str(subject_raw, "type", context="notification.subject"),
                url=subject_url if isinstance(subject_url, str) else None,
            ),
            repository=Repository(
                full_name=_require_str(
                    repository_raw,
                    "full_name",
                    context="notification.repository",
                ),
            ),
        )


@dataclass(frozen=True)
class PushEvent:
    title: str
    body: str
    reason: str
    repo: str
    id: str

    def to_payload(self) -> dict[str, str]:
        return {
            "title": self.title,
            "body": self.body,
            "reason": self.reason,
            "repo": self.repo,
            "id": self.id,
        }
