"""
Unit tests for application settings.

Tests cover:
- Defaults and CONDVAL_ environment overrides
- Enum and log level normalization
- Limit bounds
- Production CORS enforcement
"""

import pytest
from pydantic import ValidationError

from condval.core.config import AppEnvironment, Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "CONDVAL_APP_ENV",
        "CONDVAL_APP_LOG_LEVEL",
        "CONDVAL_MAX_TREE_DEPTH",
        "CONDVAL_CORS_ORIGINS",
        "CONDVAL_OBSERVABILITY_STRUCTURED_LOGS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    def test_defaults(self, clean_env):
        settings = Settings(_env_file=None)
        assert settings.app_env == AppEnvironment.LOCAL
        assert settings.app_log_level == "INFO"
        assert settings.max_tree_depth == 32
        assert settings.max_rule_count == 10_000
        assert settings.max_grid_size == 100_000
        assert settings.metrics_token is None

    def test_environment_override(self, clean_env):
        clean_env.setenv("CONDVAL_MAX_TREE_DEPTH", "4")
        clean_env.setenv("CONDVAL_APP_ENV", "TEST")
        settings = Settings(_env_file=None)
        assert settings.max_tree_depth == 4
        assert settings.app_env == AppEnvironment.TEST

    def test_cors_origins_list(self, clean_env):
        settings = Settings(_env_file=None, cors_origins=" https://a.example , ,https://b.example")
        assert settings.cors_origins_list == ["https://a.example", "https://b.example"]


class TestValidation:
    def test_invalid_app_env(self, clean_env):
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, app_env="staging")
        assert "app_env" in str(exc_info.value)

    def test_log_level_normalized(self, clean_env):
        assert Settings(_env_file=None, app_log_level=" debug ").app_log_level == "DEBUG"

    def test_invalid_log_level(self, clean_env):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, app_log_level="chatty")

    @pytest.mark.parametrize("field", ["max_tree_depth", "max_rule_count", "max_grid_size"])
    def test_limits_must_be_positive(self, clean_env, field):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: 0})

    def test_production_rejects_localhost_cors(self, clean_env):
        with pytest.raises(ValidationError, match="localhost"):
            Settings(_env_file=None, app_env="prod")

    def test_production_accepts_public_origins(self, clean_env):
        settings = Settings(
            _env_file=None, app_env="prod", cors_origins="https://rules.example.com"
        )
        assert settings.app_env == AppEnvironment.PROD

    def test_log_level_number(self, clean_env):
        assert Settings(_env_file=None, app_log_level="warning").log_level_number == 30
