"""Remote query executors for the GitHub GraphQL API."""

from .base import (
    Page,
    QueryAuthError,
    QueryError,
    QueryExecutor,
    QueryProtocolError,
    QueryRateLimitError,
    QueryTransportError,
)
from .graphql import GraphQLExecutor
from .queries import (
    ISSUE_TEMPLATE,
    PULL_REQUEST_TEMPLATE,
    QueryTemplate,
    build_variables,
    template_for,
)

__all__ = [
    # Base classes
    "QueryExecutor",
    "Page",
    # Errors
    "QueryError",
    "QueryTransportError",
    "QueryProtocolError",
    "QueryAuthError",
    "QueryRateLimitError",
    # GraphQL executor
    "GraphQLExecutor",
    # Queries
    "QueryTemplate",
    "ISSUE_TEMPLATE",
    "PULL_REQUEST_TEMPLATE",
    "build_variables",
    "template_for",
]
