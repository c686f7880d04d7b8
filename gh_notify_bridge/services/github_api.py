from __future__ import annotations

import logging
from typing import Final, Protocol

import requests

from gh_notify_bridge.domain.models import NotificationRecord
from gh_notify_bridge.logging_utils import log_event, redact_sensitive_text
from gh_notify_bridge.observability import events

DEFAULT_GITHUB_API_URL: Final[str] = "https://api.github.com"
GITHUB_API_VERSION: Final[str] = "2022-11-28"
USER_AGENT: Final[str] = "gh-notify-bridge/0.1"

API_ERROR_TIMEOUT: Final[str] = "timeout"
API_ERROR_CONNECTION: Final[str] = "connection"
API_ERROR_AUTH: Final[str] = "auth"
API_ERROR_HTTP_STATUS: Final[str] = "http_status"
API_ERROR_REQUEST: Final[str] = "request_error"
API_ERROR_PARSE: Final[str] = "parse_error"


class GitHubApiError(RuntimeError):
    """Raised when fetching notifications fails (network, auth or parse)."""

    def __init__(
        self,
        message: str,
        *,
        code: str = API_ERROR_REQUEST,
        status_code: int | None = None,
        last_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code
        self.last_error = last_error


class NotificationFetcher(Protocol):
    def fetch_notifications(self, since: str | None = None) -> list[NotificationRecord]: ...


class GitHubNotificationsClient:
    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_GITHUB_API_URL,
        timeout_sec: int = 10,
        per_page: int = 50,
        max_pages: int = 1,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.per_page = per_page
        self.max_pages = max(1, max_pages)
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger("gh_notify_bridge.github_api")

    def close(self) -> None:
        self.session.close()

    @property
    def notifications_url(self) -> str:
        return f"{self.api_url}/notifications"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": USER_AGENT,
        }

    def fetch_notifications(self, since: str | None = None) -> list[NotificationRecord]:
        params: dict[str, str | int] = {"per_page": self.per_page}
        if since:
            params["since"] = since

        url: str | None = self.notifications_url
        records: list[NotificationRecord] = []
        page_count = 0
        try:
            while url is not None and page_count < self.max_pages:
                # Next links already carry the query string.
                response = self._get(url, params=params if page_count == 0 else None)
                records.extend(self._parse_page(response))
                page_count += 1
                url = response.links.get("next", {}).get("url")
        except GitHubApiError as exc:
            self.logger.warning(
                log_event(
                    events.GITHUB_FETCH_FAILED,
                    code=exc.code,
                    status_code=exc.status_code,
                    since=since,
                    page=page_count + 1,
                    error=redact_sensitive_text(exc),
                )
            )
            raise

        self.logger.info(
            log_event(
                events.GITHUB_FETCH_SUMMARY,
                since=since,
                fetched_items=len(records),
                page_count=page_count,
                has_more=url is not None,
            )
        )
        return records

    def _get(self, url: str, *, params: dict[str, str | int] | None) -> requests.Response:
        try:
            response = self.session.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self.timeout_sec,
            )
            response.raise_for_status()
            return response
        except requests.Timeout as exc:
            raise GitHubApiError(
                f"GitHub API timeout: {exc}",
                code=API_ERROR_TIMEOUT,
                last_error=exc,
            ) from exc
        except requests.ConnectionError as exc:
            raise GitHubApiError(
                f"GitHub API connection error: {exc}",
                code=API_ERROR_CONNECTION,
                last_error=exc,
            ) from exc
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            code = API_ERROR_AUTH if status_code in {401, 403} else API_ERROR_HTTP_STATUS
            raise GitHubApiError(
                f"GitHub API error: HTTP {status_code}",
                code=code,
                status_code=status_code,
                last_error=exc,
            ) from exc
        except requests.RequestException as exc:
            raise GitHubApiError(
                f"GitHub API error: {exc}",
                code=API_ERROR_REQUEST,
                last_error=exc,
            ) from exc

    @staticmethod
    def _parse_page(response: requests.Response) -> list[NotificationRecord]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise GitHubApiError(
                f"JSON parse error: {exc}",
                code=API_ERROR_PARSE,
                status_code=response.status_code,
                last_error=exc,
            ) from exc

        if not isinstance(payload, list):
            raise GitHubApiError(
                "JSON parse error: expected a list of notifications",
                code=API_ERROR_PARSE,
                status_code=response.status_code,
            )
        try:
            return [NotificationRecord.from_api(item) for item in payload]
        except ValueError as exc:
            raise GitHubApiError(
                f"JSON parse error: {exc}",
                code=API_ERROR_PARSE,
                status_code=response.status_code,
                last_error=exc,
            ) from exc
