"""
GraphQL executor implementation using httpx.

Provides async GraphQL calls against the GitHub v4 API with:
- Bearer token authentication
- Automatic retry with exponential backoff on transport and 5xx errors
- Rate limit detection (HTTP and GraphQL level)
- Extraction of one connection page from the response
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from ghexport.core.fetch.retries import RetryConfig, retry_async

from .base import (
    Page,
    QueryAuthError,
    QueryError,
    QueryExecutor,
    QueryProtocolError,
    QueryRateLimitError,
    QueryTransportError,
)
from .queries import QueryTemplate

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com/graphql"
DEFAULT_USER_AGENT = "GitHub-Data-Exporter"

# Status codes that should trigger retry
RETRY_STATUS_CODES = {500, 502, 503, 504}


class _RetryableStatus(Exception):
    """Internal marker for a server error worth retrying."""

    def __init__(self, response: httpx.Response):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


def _reset_from_header(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc).isoformat()
    except (ValueError, OverflowError):
        return None


class GraphQLExecutor(QueryExecutor):
    """GitHub GraphQL executor backed by httpx.AsyncClient.

    Features:
    - Persistent connection pooling
    - Retry with exponential backoff
    - Rate limit detection
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        user_agent: str = DEFAULT_USER_AGENT,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize GraphQL executor.

        Args:
            token: Personal access token
            api_url: GraphQL endpoint
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per request
            user_agent: User-Agent header value
            retry_config: Override backoff settings
            transport: Custom httpx transport (tests)
        """
        self.api_url = api_url
        self.timeout = timeout
        self.retry_config = (retry_config or RetryConfig(max_attempts=max_retries, jitter=False)).retrying_on(
            httpx.TransportError, _RetryableStatus
        )

        self.default_headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": user_agent,
        }

        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "graphql"

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=self.default_headers,
                transport=self._transport,
            )
        return self._client

    def _log_request(self, variables: dict[str, Any]) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        logger.debug("Request: POST %s variables=%s", self.api_url, variables)
        for header, value in self.default_headers.items():
            if header.lower() == "authorization":
                value = "<masked>"
            logger.debug("%s=%s", header, value)

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        client = await self._ensure_client()
        response = await client.post(self.api_url, json=payload)
        if response.status_code in RETRY_STATUS_CODES:
            raise _RetryableStatus(response)
        return response

    def _check_status(self, response: httpx.Response) -> None:
        """Raise on authorization, rate limit and other HTTP failures."""
        status = response.status_code
        if status == 401:
            raise QueryAuthError("Bad credentials", status_code=status)

        remaining = response.headers.get("X-RateLimit-Remaining")
        if status == 429 or (status == 403 and remaining == "0"):
            raise QueryRateLimitError(
                "Rate limit exceeded",
                status_code=status,
                reset_at=_reset_from_header(response.headers.get("X-RateLimit-Reset")),
            )

        if not 200 <= status < 300:
            raise QueryTransportError(f"Unexpected HTTP status {status}", status_code=status)

    def _extract_page(self, template: QueryTemplate, body: Any) -> Page:
        if not isinstance(body, dict):
            raise QueryProtocolError("Response body is not a JSON object")

        errors = body.get("errors") or []
        if any(isinstance(e, dict) and e.get("type") == "RATE_LIMITED" for e in errors):
            raise QueryRateLimitError("GraphQL rate limit exceeded")

        data = body.get("data")
        repository = data.get("repository") if isinstance(data, dict) else None

        if errors:
            messages = "; ".join(
                str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
            )
            if not isinstance(repository, dict):
                raise QueryProtocolError(f"GraphQL error: {messages}")
            logger.warning("GraphQL returned partial data with errors: %s", messages)

        if not isinstance(repository, dict):
            raise QueryProtocolError("Response missing data.repository")

        connection = repository.get(template.connection)
        if not isinstance(connection, dict):
            raise QueryProtocolError(
                f"Response missing repository.{template.connection}"
            )

        nodes = connection.get("nodes")
        if not isinstance(nodes, list):
            raise QueryProtocolError(
                f"repository.{template.connection}.nodes not found or not an array"
            )

        page_info = connection.get("pageInfo") or {}
        return Page(
            records=nodes,
            end_cursor=page_info.get("endCursor") or None,
            has_next_page=bool(page_info.get("hasNextPage", False)),
            total_count=connection.get("totalCount"),
        )

    async def execute(self, template: QueryTemplate, variables: dict[str, Any]) -> Page:
        """Run a query and return the selected connection page.

        Raises:
            QueryError: On any failure
        """
        payload = {"query": template.document, "variables": variables}
        self._log_request(variables)

        try:
            response = await retry_async(self._post, payload, config=self.retry_config)
        except _RetryableStatus as e:
            raise QueryTransportError(
                f"Server error after {self.retry_config.max_attempts} attempts: {e}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            raise QueryTransportError(
                f"Transport error after {self.retry_config.max_attempts} attempts: {e}",
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise QueryTransportError(f"HTTP error: {e}", cause=e) from e

        self._check_status(response)

        try:
            body = response.json()
        except ValueError as e:
            raise QueryProtocolError(f"Invalid JSON response: {e}", cause=e) from e

        return self._extract_page(template, body)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


__all__ = ["GraphQLExecutor", "QueryError"]
