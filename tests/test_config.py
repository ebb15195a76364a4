"""Tests for configuration models and the YAML loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from ghexport.core.config import (
    AppConfig,
    ConfigError,
    ExportConfig,
    OrderField,
    ResourceKind,
    load_app_config,
    validate_config_file,
)
from ghexport.core.config.loader import DEFAULT_CONFIG_PATH, resolve_config_path


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestModels:
    def test_defaults(self):
        config = AppConfig()
        assert config.export.batch_size == 100
        assert config.export.pagination.max_items == 1000
        assert config.export.page_delay_ms == 100
        assert config.export.order_field is OrderField.UPDATED_AT
        assert config.export.file_path(ResourceKind.ISSUES) == Path("./exports/issues.json")
        assert config.export.file_path(ResourceKind.PULL_REQUESTS) == Path("./exports/pull-requests.json")

    def test_batch_size_is_bounded(self):
        with pytest.raises(ValueError):
            ExportConfig(batch_size=101)
        with pytest.raises(ValueError):
            ExportConfig(batch_size=0)

    def test_item_cap(self):
        assert ExportConfig(pagination={"max_items": 250}).item_cap == 250
        assert ExportConfig(batch_size=50, pagination={"enabled": False}).item_cap == 50

    def test_log_level_normalised(self):
        assert AppConfig(logging={"level": "debug"}).logging.level == "DEBUG"
        with pytest.raises(ValueError):
            AppConfig(logging={"level": "loud"})

    def test_require_credentials(self):
        with pytest.raises(ValueError) as exc_info:
            AppConfig().require_credentials()
        message = str(exc_info.value)
        assert "github.token" in message
        assert "github.repository.owner" in message

        AppConfig(github={"token": "t", "repository": {"owner": "o", "name": "n"}}).require_credentials()

    def test_masked(self):
        config = AppConfig(github={"token": "ghp_secret"})
        assert config.masked()["github"]["token"] == "<masked>"
        assert config.github.token == "ghp_secret"

    def test_resource_kind_labels(self):
        assert ResourceKind.ISSUES.label == "issues"
        assert ResourceKind.PULL_REQUESTS.label == "pull requests"
        assert ResourceKind.PULL_REQUESTS.id_prefix == "prs"


class TestLoader:
    def test_missing_file_yields_defaults_and_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        monkeypatch.setenv("REPO_OWNER", "octo")
        monkeypatch.setenv("REPO_NAME", "demo")
        monkeypatch.setenv("EXPORT_DIR", str(tmp_path / "dump"))

        config = load_app_config(tmp_path / "absent.yaml")

        assert config.github.token == "env-token"
        assert config.github.repository.slug == "octo/demo"
        assert config.export.directory == tmp_path / "dump"

    def test_yaml_with_env_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("REPO_OWNER", "octo")
        path = _write(tmp_path / "app.yaml", """\
github:
  token: ${MISSING_TOKEN:-fallback}
  repository:
    owner: ${REPO_OWNER}
    name: demo
export:
  batch_size: 50
  pagination:
    max_items: 200
  order_direction: ASC
""")
        config = load_app_config(path)

        assert config.github.token == "fallback"
        assert config.github.repository.owner == "octo"
        assert config.export.batch_size == 50
        assert config.export.item_cap == 200
        assert config.export.order_direction.value == "ASC"

    def test_file_values_win_over_env_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        path = _write(tmp_path / "app.yaml", "github:\n  token: file-token\n")
        assert load_app_config(path).github.token == "file-token"

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        path = _write(tmp_path / "custom.yaml", "server:\n  port: 9090\n")
        monkeypatch.setenv("GHEXPORT_CONFIG", str(path))

        assert resolve_config_path() == path
        assert load_app_config().server.port == 9090

    def test_default_path(self):
        assert resolve_config_path() == DEFAULT_CONFIG_PATH

    def test_invalid_yaml(self, tmp_path):
        path = _write(tmp_path / "app.yaml", "github: [unclosed\n")
        with pytest.raises(ConfigError) as exc_info:
            load_app_config(path)
        assert exc_info.value.path == path

    def test_invalid_values(self, tmp_path):
        path = _write(tmp_path / "app.yaml", "export:\n  batch_size: 500\n")
        with pytest.raises(ConfigError) as exc_info:
            load_app_config(path)
        assert "batch_size" in exc_info.value.details

    def test_top_level_must_be_mapping(self, tmp_path):
        path = _write(tmp_path / "app.yaml", "- a\n- b\n")
        with pytest.raises(ConfigError):
            load_app_config(path)

    def test_empty_file(self, tmp_path):
        path = _write(tmp_path / "app.yaml", "")
        assert load_app_config(path).export.batch_size == 100


class TestValidateConfigFile:
    def test_valid(self, tmp_path):
        path = _write(tmp_path / "app.yaml", "export:\n  batch_size: 10\n")
        assert validate_config_file(path) == []

    def test_reports_locations(self, tmp_path):
        path = _write(tmp_path / "app.yaml", "export:\n  batch_size: 500\nserver:\n  port: 0\n")
        errors = validate_config_file(path)
        assert any(e.startswith("export.batch_size") for e in errors)
        assert any(e.startswith("server.port") for e in errors)

    def test_missing_file(self, tmp_path):
        errors = validate_config_file(tmp_path / "nope.yaml")
        assert len(errors) == 1
        assert "not found" in errors[0]
