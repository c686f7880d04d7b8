from __future__ import annotations

from gh_notify_bridge.domain.models import NotificationRecord, PushEvent

TITLE_TEMPLATE = "[{repo}] {title}"
BODY_TEMPLATE = "{reason}: {kind}"


def build_push_title(record: NotificationRecord) -> str:
    return TITLE_TEMPLATE.format(
        repo=record.repository.full_name,
        title=record.subject.title,
    )


def build_push_body(record: NotificationRecord) -> str:
    return BODY_TEMPLATE.format(reason=record.reason, kind=record.subject.kind)


def build_push_event(record: NotificationRecord) -> PushEvent:
    return PushEvent(
        title=build_push_title(record),
        body=build_push_body(record),
        reason=record.reason,
        repo=record.repository.full_name,
        id=record.id,
    )
