"""Server lifespan: creates the SonarQube client and permission manager on startup."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sonarqube_mcp.auth.manager import PermissionManager
from sonarqube_mcp.auth.service import PermissionService
from sonarqube_mcp.logging.logger import setup_logger
from sonarqube_mcp.settings import SonarQubeSettings
from sonarqube_mcp.sonarqube.client import SonarQubeClient

_client: SonarQubeClient | None = None
_settings: SonarQubeSettings | None = None
_permissions: PermissionManager | None = None


def get_sonarqube_client() -> SonarQubeClient:
    """Return the active SonarQubeClient. Only valid during server lifespan."""
    if _client is None:
        raise RuntimeError("SonarQubeClient not initialized. Is the server running?")
    return _client


def get_settings() -> SonarQubeSettings:
    """Return the loaded settings. Only valid during server lifespan."""
    if _settings is None:
        raise RuntimeError("Settings not loaded. Is the server running?")
    return _settings


def get_permission_service() -> PermissionService | None:
    """Return the permission service, or None when permissions are disabled."""
    if _permissions is None:
        return None
    return _permissions.service


@asynccontextmanager
async def lifespan(server) -> AsyncIterator[None]:  # noqa: ARG001
    """Async context manager that manages the client and permission lifecycle."""
    global _client, _settings, _permissions

    _settings = SonarQubeSettings()
    logger = setup_logger(level=_settings.log_level)
    logger.info("Starting sonarqube-mcp server (url=%s)", _settings.url)

    # A broken permission config aborts startup
    _permissions = PermissionManager.from_settings(_settings)
    if not _permissions.enabled:
        logger.info("Permission checks disabled: no permission configuration")

    _client = SonarQubeClient(
        base_url=_settings.url,
        token=_settings.token,
        organization=_settings.organization,
        timeout=_settings.timeout,
        ssl_verify=_settings.ssl_verify,
    )

    try:
        yield
    finally:
        logger.info("Shutting down sonarqube-mcp server")
        await _client.close()
        _client = None
        _settings = None
        _permissions = None
