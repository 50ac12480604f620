"""Tool configuration using Pydantic Settings with multi-file support."""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Redeploy configuration loaded from environment variables.

    Every variable carries the ``REDEPLOY_`` prefix so the tool can share an
    ``.env`` file with the backend it restarts without picking up its keys.

    Priority (lowest to highest):
    1. .env (shared with the backend checkout)
    2. redeploy.env (host-specific overrides)
    3. OS environment variables (highest priority)
    """

    model_config = SettingsConfigDict(
        env_prefix="REDEPLOY_",
        env_file=(".env", "redeploy.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Tool
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    ENVIRONMENT: Literal["development", "production"] = "production"
    DRY_RUN: bool = Field(default=False, description="Log commands without running them")

    # Backend checkout
    CANDIDATE_DIRS: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "~/CredionNew/backend",
            "/home/ec2-user/CredionNew/backend",
            "~/backend",
        ],
        description="Backend directories tried in order; first existing one wins",
    )
    APP_NAME: str = Field(default="credion-backend", description="pm2 process name")
    ENTRYPOINT: str = "app.js"

    # Git
    GIT_REMOTE: str = "origin"
    GIT_BRANCHES: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["main", "master"],
    )
    PULL_FAILURE_POLICY: Literal["abort", "warn"] = Field(
        default="abort",
        description="Whether a failed pull stops the redeploy or only warns",
    )

    # npm
    NPM_INSTALL_ARGS: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["install", "--production"],
    )

    # Timing
    STOP_SETTLE_SECONDS: float = Field(default=2.0, ge=0.0)
    STARTUP_WAIT_SECONDS: float = Field(default=5.0, ge=0.0)
    COMMAND_TIMEOUT_SECONDS: int = Field(default=600, ge=1)

    # Health check and probes
    HOST: str = "127.0.0.1"
    PORT: int = Field(default=3001, ge=1, le=65535)
    HEALTH_PATH: str = "/health"
    HEALTH_ATTEMPTS: int = Field(default=1, ge=1, le=60)
    HEALTH_INTERVAL_SECONDS: float = Field(default=2.0, ge=0.0)
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0.0)
    PROBE_BODY_LIMIT: int = Field(default=300, ge=0)
    PROBE_LAST_NAME: str = "test"

    # Logs and sanity checks
    LOG_FILE: str = Field(default="app.log", description="Output file for unmanaged launches")
    LOG_TAIL_LINES: int = Field(default=20, ge=1)
    ROUTES_FILE: str = "routes/payment.routes.js"
    VERIFY_ROUTES: bool = True
    ENV_FILE: str = Field(default=".env", description="Backend env file, relative to workdir")

    @field_validator("CANDIDATE_DIRS", "GIT_BRANCHES", "NPM_INSTALL_ARGS", mode="before")
    @classmethod
    def parse_list(cls, v: str | list[str]) -> list[str]:
        """Parse lists from a JSON array or a comma-separated string."""
        if isinstance(v, str):
            stripped = v.strip()
            if stripped.startswith("["):
                return json.loads(stripped)
            return [item.strip() for item in stripped.split(",") if item.strip()]
        return v

    @field_validator("HEALTH_PATH")
    @classmethod
    def normalize_path(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"

    @property
    def base_url(self) -> str:
        """Local URL of the backend server."""
        return f"http://{self.HOST}:{self.PORT}"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
