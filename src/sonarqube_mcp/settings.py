"""Configuration settings loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class SonarQubeSettings(BaseSettings):
    """SonarQube MCP server settings.

    All settings are loaded from environment variables prefixed with SONARQUBE_,
    falling back to a local .env file.
    """

    model_config = {"env_prefix": "SONARQUBE_", "env_file": ".env", "extra": "ignore"}

    # Required
    token: str

    # Optional
    url: str = "https://sonarcloud.io"
    organization: str | None = None
    read_only_mode: bool = False
    timeout: int = 30
    rate_limit_calls: int = 30
    rate_limit_period: int = 60
    log_level: str = "INFO"
    ssl_verify: bool | str = True

    # Permissions: inline JSON wins over the file path; neither means disabled
    permission_config: str | None = None
    permission_config_path: Path | None = None
