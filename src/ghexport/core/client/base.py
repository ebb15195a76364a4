"""
Query executor base classes and data structures.

Defines the interface contract for anything that can run one paginated
GraphQL query and hand back a single page.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from .queries import QueryTemplate


@dataclass
class Page:
    """One page of a paginated connection."""

    records: list[Any] = field(default_factory=list)
    end_cursor: str | None = None
    has_next_page: bool = False
    total_count: int | None = None

    @property
    def is_empty(self) -> bool:
        return not self.records


class QueryExecutor(ABC):
    """Abstract base class for remote query executors.

    Implementations run a single query and return one page, or raise a
    QueryError. Callers do not distinguish between error subtypes.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Executor identifier."""
        pass

    @abstractmethod
    async def execute(self, template: QueryTemplate, variables: dict[str, Any]) -> Page:
        """Run a query and return the page it selects.

        Args:
            template: Query document and the connection it pages
            variables: GraphQL variables

        Returns:
            Page with raw records and pagination info

        Raises:
            QueryError: On transport, protocol or authorization failure
        """
        pass

    async def close(self) -> None:
        """Clean up executor resources."""
        pass

    async def __aenter__(self) -> "QueryExecutor":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class QueryError(Exception):
    """Base exception for query execution failures."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause


class QueryTransportError(QueryError):
    """Network failure or server error that survived retries."""
    pass


class QueryProtocolError(QueryError):
    """Response was not a usable GraphQL payload."""
    pass


class QueryAuthError(QueryError):
    """Credentials rejected."""
    pass


class QueryRateLimitError(QueryError):
    """Rate limit hit (429, exhausted quota, or RATE_LIMITED)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reset_at: str | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.reset_at = reset_at
