"""Configuration loading and validation."""

from .models import (
    # Enums
    ResourceKind,
    OrderField,
    OrderDirection,
    # Config models
    AppConfig,
    GitHubConfig,
    RepositoryConfig,
    ExportConfig,
    ExportFilesConfig,
    PaginationConfig,
    LoggingConfig,
    ServerConfig,
    MAX_BATCH_SIZE,
)
from .loader import ConfigError, load_app_config, validate_config_file

__all__ = [
    # Enums
    "ResourceKind",
    "OrderField",
    "OrderDirection",
    # Config models
    "AppConfig",
    "GitHubConfig",
    "RepositoryConfig",
    "ExportConfig",
    "ExportFilesConfig",
    "PaginationConfig",
    "LoggingConfig",
    "ServerConfig",
    "MAX_BATCH_SIZE",
    # Loaders
    "ConfigError",
    "load_app_config",
    "validate_config_file",
]
