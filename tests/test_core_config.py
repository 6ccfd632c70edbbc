"""Tests for lspd.core.config."""

import json
from datetime import datetime
from unittest.mock import patch

import pytest

from lspd.core import config as config_module
from lspd.core.config import (
    DEFAULT_HIGH_COMMAND_ROLES,
    get_cosmos_database,
    get_firebase_project_id,
    get_org_config,
    load_org_config,
    local_now,
)


@pytest.fixture
def _reset_cache():
    config_module._org_config = None
    yield
    config_module._org_config = None


def _write_config(tmp_path, data: dict) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "organization.json").write_text(json.dumps(data))


class TestLoadOrgConfig:
    """Tests for load_org_config function."""

    def test_loads_project_config(self):
        config = load_org_config()
        assert config.company_name == "Los Santos Police Department"
        assert config.cosmos_database == "lspd-roster"
        assert config.profiles_container == "profiles"
        assert "chief-of-police" in config.high_command_roles

    def test_loads_values(self, tmp_path):
        _write_config(
            tmp_path,
            {
                "company_name": "Test PD",
                "domain": "test.org",
                "timezone": "America/Los_Angeles",
                "cosmos_database": "test-db",
                "profiles_container": "people",
                "high_command_roles": [" Admin ", "director"],
                "cors_origins": ["https://a.test.org"],
            },
        )
        with patch("lspd.core.config.get_project_root", return_value=tmp_path):
            config = load_org_config()

        assert config.company_name == "Test PD"
        assert config.timezone == "America/Los_Angeles"
        assert config.profiles_container == "people"
        assert config.high_command_roles == frozenset({"admin", "director"})
        assert config.cors_origins == ("https://a.test.org",)

    def test_defaults_when_missing(self, tmp_path):
        _write_config(tmp_path, {"company_name": "Test PD", "domain": "test.org"})
        with patch("lspd.core.config.get_project_root", return_value=tmp_path):
            config = load_org_config()

        assert config.timezone == "UTC"
        assert config.profiles_container == "profiles"
        assert config.high_command_roles == frozenset(DEFAULT_HIGH_COMMAND_ROLES)
        assert config.cors_origins == ()

    def test_raises_when_file_missing(self, tmp_path):
        (tmp_path / "config").mkdir()
        with (
            patch("lspd.core.config.get_project_root", return_value=tmp_path),
            pytest.raises(FileNotFoundError),
        ):
            load_org_config()


class TestGetOrgConfig:
    def test_cached(self, _reset_cache):
        with patch("lspd.core.config.load_org_config", wraps=load_org_config) as loader:
            first = get_org_config()
            second = get_org_config()
        assert first is second
        assert loader.call_count == 1


class TestEnvironment:
    def test_cosmos_database_from_config(self, monkeypatch):
        monkeypatch.delenv("COSMOS_DATABASE", raising=False)
        assert get_cosmos_database() == "lspd-roster"

    def test_cosmos_database_env_override(self, monkeypatch):
        monkeypatch.setenv("COSMOS_DATABASE", "lspd-staging")
        assert get_cosmos_database() == "lspd-staging"

    def test_firebase_project_unset(self):
        assert get_firebase_project_id() == ""

    def test_firebase_project_set(self, monkeypatch):
        monkeypatch.setenv("FIREBASE_PROJECT_ID", "lspd-mdt")
        assert get_firebase_project_id() == "lspd-mdt"

    def test_local_now_is_aware(self):
        now = local_now()
        assert isinstance(now, datetime)
        assert now.tzinfo is not None
        assert str(now.tzinfo) == "Europe/Warsaw"
