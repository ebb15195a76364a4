"""
Pydantic configuration models for ghexport.

These models provide type-safe configuration with validation for:
- GitHub API access and repository coordinates
- Export destination, batching and pagination
- Logging and the HTTP server
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


# Hard ceiling imposed by the GraphQL API on `first:`
MAX_BATCH_SIZE = 100


# =============================================================================
# Enums
# =============================================================================


class ResourceKind(str, Enum):
    """Exportable GitHub collections."""

    ISSUES = "issues"
    PULL_REQUESTS = "pull_requests"

    @property
    def label(self) -> str:
        """Human-readable plural used in messages."""
        return "issues" if self is ResourceKind.ISSUES else "pull requests"

    @property
    def id_prefix(self) -> str:
        """Prefix used for export operation ids."""
        return "issues" if self is ResourceKind.ISSUES else "prs"


class OrderField(str, Enum):
    """GraphQL ordering fields accepted for issues and pull requests."""

    CREATED_AT = "CREATED_AT"
    UPDATED_AT = "UPDATED_AT"
    COMMENTS = "COMMENTS"


class OrderDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


# =============================================================================
# GitHub Configuration
# =============================================================================


class RepositoryConfig(BaseModel):
    """Repository coordinates to export from."""

    owner: str = Field(
        default="",
        description="Owner (user or organization) of the repository",
    )
    name: str = Field(
        default="",
        description="Repository name",
    )

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


class GitHubConfig(BaseModel):
    """GitHub GraphQL API access settings."""

    api_url: str = Field(
        default="https://api.github.com/graphql",
        description="GraphQL endpoint",
    )
    token: str = Field(
        default="",
        description="Personal access token (set via GITHUB_TOKEN)",
    )
    timeout_seconds: float = Field(
        default=30.0,
        ge=1.0,
        le=300.0,
        description="Request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per request on transport errors",
    )
    user_agent: str = Field(
        default="GitHub-Data-Exporter",
        description="User-Agent header sent with every request",
    )
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)


# =============================================================================
# Export Configuration
# =============================================================================


class ExportFilesConfig(BaseModel):
    """Output file names per resource kind."""

    issues: str = Field(default="issues.json", min_length=1)
    pull_requests: str = Field(default="pull-requests.json", min_length=1)

    def for_kind(self, kind: ResourceKind) -> str:
        if kind is ResourceKind.ISSUES:
            return self.issues
        return self.pull_requests


class PaginationConfig(BaseModel):
    """Pagination limits."""

    enabled: bool = Field(
        default=True,
        description="Follow cursors past the first batch",
    )
    max_items: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of items to fetch in total",
    )


class ExportConfig(BaseModel):
    """Export destination, batching and pacing."""

    directory: Path = Field(
        default=Path("./exports"),
        description="Directory where exported files are saved",
    )
    files: ExportFilesConfig = Field(default_factory=ExportFilesConfig)
    batch_size: int = Field(
        default=MAX_BATCH_SIZE,
        ge=1,
        le=MAX_BATCH_SIZE,
        description="Items requested per GraphQL call",
    )
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    page_delay_ms: int = Field(
        default=100,
        ge=0,
        le=60000,
        description="Pause between page requests in milliseconds",
    )
    order_field: OrderField = Field(default=OrderField.UPDATED_AT)
    order_direction: OrderDirection = Field(default=OrderDirection.DESC)
    run_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Stop paging after this long and keep partial results",
    )

    @property
    def item_cap(self) -> int:
        """Effective total cap; a single batch when pagination is off."""
        if not self.pagination.enabled:
            return min(self.batch_size, self.pagination.max_items)
        return self.pagination.max_items

    def file_path(self, kind: ResourceKind) -> Path:
        return self.directory / self.files.for_kind(kind)


# =============================================================================
# Logging / Server Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class ServerConfig(BaseModel):
    """HTTP API bind settings."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1, le=65535)


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    def require_credentials(self) -> None:
        """Raise ValueError unless token and repository coordinates are set."""
        missing = []
        if not self.github.token:
            missing.append("github.token")
        if not self.github.repository.owner:
            missing.append("github.repository.owner")
        if not self.github.repository.name:
            missing.append("github.repository.name")
        if missing:
            raise ValueError(f"Missing required settings: {', '.join(missing)}")

    def masked(self) -> dict:
        """Dump for display with the token hidden."""
        data = self.model_dump(mode="json")
        if data["github"]["token"]:
            data["github"]["token"] = "<masked>"
        return data
