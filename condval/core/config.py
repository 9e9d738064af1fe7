"""
Settings for the condval HTTP service and CLI.

Values come from ``CONDVAL_*`` environment variables. A dotenv file is read
only when ``ENV_FILE`` names one:

    ENV_FILE=.env.local uv run dev
    CONDVAL_MAX_TREE_DEPTH=8 uv run condval-eval rules.json -p a=1
"""

import logging
import os
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOOPBACK_HOSTS = ("localhost", "127.0.0.1")


class AppEnvironment(str, Enum):
    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class Settings(BaseSettings):
    """
    Service configuration.

    The engine never reads these; hosts turn the limits into BuildLimits
    and pass them to the builder explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="CONDVAL_",
        env_file=os.getenv("ENV_FILE") or None,
        extra="ignore",
    )

    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "condval"
    app_log_level: str = "INFO"

    observability_enabled: bool = True
    observability_structured_logs: bool = True
    observability_request_id_header: str = "X-Request-ID"
    # /metrics requires a matching X-Metrics-Token header when set
    metrics_token: str | None = None

    # Structural bounds for rule trees received over HTTP or from files
    max_tree_depth: int = Field(default=32, ge=1)
    max_rule_count: int = Field(default=10_000, ge=1)
    # Parameter sets allowed in one /coverage request
    max_grid_size: int = Field(default=100_000, ge=1)

    # Comma separated
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.app_log_level)

    @field_validator("app_env", mode="before")
    @classmethod
    def parse_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Accept environment names case-insensitively."""
        if isinstance(v, AppEnvironment):
            return v
        allowed = [env.value for env in AppEnvironment]
        if str(v).lower() not in allowed:
            raise ValueError(f"app_env must be one of {allowed}, got '{v}'")
        return AppEnvironment(str(v).lower())

    @field_validator("app_log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"app_log_level must be one of {list(_LOG_LEVELS)}, got '{v}'")
        return level

    @model_validator(mode="after")
    def check_production_origins(self) -> "Settings":
        """Production deployments must not allow loopback CORS origins."""
        if self.app_env != AppEnvironment.PROD:
            return self
        loopback = [
            origin
            for origin in self.cors_origins_list
            if any(host in origin for host in _LOOPBACK_HOSTS)
        ]
        if loopback:
            raise ValueError(f"CORS origins must not contain localhost in production: {loopback}")
        return self


settings = Settings()
