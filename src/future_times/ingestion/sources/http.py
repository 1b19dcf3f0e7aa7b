"""Shared HTTP client for source fetchers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from future_times.errors import SourceFetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 6.5
DEFAULT_MAX_RETRIES = 1
DEFAULT_USER_AGENT = "FutureTimesBot/1.0"
ERROR_BODY_PREVIEW_CHARS = 140


@dataclass(slots=True)
class HttpResponse:
    """Body and status of one successful source request."""

    url: str
    status_code: int
    text: str
    content_type: str


class SourceHttpClient:
    """Thread-safe ``httpx`` client with per-request timeout and a bot user agent."""

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_seconds),
            headers={"User-Agent": user_agent},
            transport=transport or httpx.HTTPTransport(retries=max_retries),
            follow_redirects=True,
        )

    def get(self, url: str, *, accept: str, source_id: str = "") -> HttpResponse:
        """GET ``url`` or raise :class:`SourceFetchError` with a short message."""

        try:
            response = self._client.get(url, headers={"Accept": accept})
        except httpx.TimeoutException as error:
            logger.warning("Timeout fetching %s for source %s", url, source_id)
            raise SourceFetchError(
                message="timeout",
                code="timeout",
                source_id=source_id,
            ) from error
        except httpx.HTTPError as error:
            logger.warning("HTTP error fetching %s for source %s: %s", url, source_id, error)
            raise SourceFetchError(
                message=str(error) or error.__class__.__name__,
                code="transport",
                source_id=source_id,
            ) from error

        if not response.is_success:
            preview = response.text[:ERROR_BODY_PREVIEW_CHARS].strip()
            raise SourceFetchError(
                message=f"HTTP {response.status_code}: {preview}".rstrip(": "),
                code="http_status",
                source_id=source_id,
                status=response.status_code,
            )
        return HttpResponse(
            url=url,
            status_code=response.status_code,
            text=response.text,
            content_type=response.headers.get("content-type", ""),
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> SourceHttpClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
