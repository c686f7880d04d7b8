from __future__ import annotations

import pytest
import requests

from gh_notify_bridge.services.github_api import (
    API_ERROR_AUTH,
    API_ERROR_CONNECTION,
    API_ERROR_HTTP_STATUS,
    API_ERROR_PARSE,
    API_ERROR_REQUEST,
    API_ERROR_TIMEOUT,
    GITHUB_API_VERSION,
    GitHubApiError,
    GitHubNotificationsClient,
)
from tests.main_test_harness import quiet_logger


def _api_item(notification_id: str = "1", **overrides: object) -> dict[str, object]:
    item: dict[str, object] = {
        "id": notification_id,
        "unread": True,
        "reason": "review_requested",
        "updated_at": "2024-01-13T12:00:00Z",
        "subject": {"title": "Add caching", "type": "PullRequest", "url": None},
        "repository": {"full_name": "octo/widgets"},
    }
    item.update(overrides)
    return item


class DummyResponse:
    def __init__(
        self,
        status_code: int = 200,
        *,
        json_body: object | None = None,
        json_error: Exception | None = None,
        next_url: str | None = None,
    ) -> None:
        self.status_code = status_code
        self._json_body = [] if json_body is None else json_body
        self._json_error = json_error
        self.links = {"next": {"url": next_url}} if next_url else {}

    def raise_for_status(self) -> None:
        if 400 <= self.status_code:
            error = requests.HTTPError(f"http error {self.status_code}")
            error.response = self
            raise error

    def json(self) -> object:
        if self._json_error is not None:
            raise self._json_error
        return self._json_body


class FakeSession:
    def __init__(self, outcomes: list[object]) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, object]] = []
        self.closed = False

    def get(self, url: str, params: object = None, headers: object = None, timeout: object = None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


def _client(session: FakeSession, **kwargs: object) -> GitHubNotificationsClient:
    return GitHubNotificationsClient(
        token="ghp_secretvalue1234567890",
        api_url="https://api.github.example/",
        timeout_sec=3,
        session=session,  # type: ignore[arg-type]
        logger=quiet_logger("test.github_api"),
        **kwargs,  # type: ignore[arg-type]
    )


def test_fetch_sends_auth_headers_and_since() -> None:
    session = FakeSession([DummyResponse(json_body=[_api_item()])])
    client = _client(session, per_page=25)

    records = client.fetch_notifications(since="2024-01-13T11:00:00Z")

    call = session.calls[0]
    assert call["url"] == "https://api.github.example/notifications"
    assert call["params"] == {"per_page": 25, "since": "2024-01-13T11:00:00Z"}
    assert call["timeout"] == 3
    headers = call["headers"]
    assert headers["Authorization"] == "Bearer ghp_secretvalue1234567890"
    assert headers["Accept"] == "application/vnd.github+json"
    assert headers["X-GitHub-Api-Version"] == GITHUB_API_VERSION
    assert headers["User-Agent"]
    assert len(records) == 1
    record = records[0]
    assert record.id == "1"
    assert record.reason == "review_requested"
    assert record.subject.kind == "PullRequest"
    assert record.repository.full_name == "octo/widgets"


def test_fetch_without_since_omits_parameter() -> None:
    session = FakeSession([DummyResponse(json_body=[])])

    assert _client(session).fetch_notifications() == []
    assert session.calls[0]["params"] == {"per_page": 50}


def test_fetch_keeps_read_records_for_caller() -> None:
    session = FakeSession([DummyResponse(json_body=[_api_item("1", unread=False), _api_item("2")])])

    records = _client(session).fetch_notifications()

    assert [(r.id, r.unread) for r in records] == [("1", False), ("2", True)]


def test_fetch_stops_at_max_pages() -> None:
    session = FakeSession(
        [
            DummyResponse(json_body=[_api_item("1")], next_url="https://api.github.example/n?page=2"),
            DummyResponse(json_body=[_api_item("2")], next_url="https://api.github.example/n?page=3"),
        ]
    )

    records = _client(session, max_pages=2).fetch_notifications(since="2024-01-01T00:00:00Z")

    assert [r.id for r in records] == ["1", "2"]
    assert len(session.calls) == 2
    assert session.calls[1]["url"] == "https://api.github.example/n?page=2"
    assert session.calls[1]["params"] is None


def test_fetch_single_page_by_default_ignores_next_link() -> None:
    session = FakeSession(
        [DummyResponse(json_body=[_api_item("1")], next_url="https://api.github.example/n?page=2")]
    )

    records = _client(session).fetch_notifications()

    assert [r.id for r in records] == ["1"]
    assert len(session.calls) == 1


@pytest.mark.parametrize(
    ("outcome", "expected_code", "expected_status"),
    [
        (requests.Timeout("slow"), API_ERROR_TIMEOUT, None),
        (requests.ConnectionError("refused"), API_ERROR_CONNECTION, None),
        (requests.RequestException("odd"), API_ERROR_REQUEST, None),
        (DummyResponse(401), API_ERROR_AUTH, 401),
        (DummyResponse(403), API_ERROR_AUTH, 403),
        (DummyResponse(502), API_ERROR_HTTP_STATUS, 502),
    ],
)
def test_fetch_maps_transport_failures(
    outcome: object, expected_code: str, expected_status: int | None
) -> None:
    session = FakeSession([outcome])

    with pytest.raises(GitHubApiError) as exc_info:
        _client(session).fetch_notifications()

    assert exc_info.value.code == expected_code
    assert exc_info.value.status_code == expected_status


@pytest.mark.parametrize(
    "response",
    [
        DummyResponse(json_error=ValueError("not json")),
        DummyResponse(json_body={"message": "not a list"}),
        DummyResponse(json_body=[{"id": "1"}]),
        DummyResponse(json_body=[_api_item(unread="yes")]),
    ],
)
def test_fetch_reports_parse_errors(response: DummyResponse) -> None:
    with pytest.raises(GitHubApiError) as exc_info:
        _client(FakeSession([response])).fetch_notifications()

    assert exc_info.value.code == API_ERROR_PARSE


def test_close_closes_session() -> None:
    session = FakeSession([])

    _client(session).close()

    assert session.closed is True
