"""System tools: health, status and ping."""

from __future__ import annotations

from typing import Any

from sonarqube_mcp.guards.rate_limit import rate_limit
from sonarqube_mcp.handlers.wrapper import permission_aware
from sonarqube_mcp.lifespan import get_sonarqube_client
from sonarqube_mcp.server import mcp


@permission_aware("system_health")
async def health_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().get_health()


@permission_aware("system_status")
async def status_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().get_status()


@permission_aware("system_ping")
async def ping_handler(params: dict[str, Any]) -> str:
    return await get_sonarqube_client().ping()


@mcp.tool(name="system_health")
@rate_limit
async def system_health() -> dict[str, Any]:
    """Get the health status of the SonarQube instance (GREEN, YELLOW or RED)."""
    return await health_handler({})


@mcp.tool(name="system_status")
@rate_limit
async def system_status() -> dict[str, Any]:
    """Get the SonarQube instance status: id, version and state (UP, STARTING, ...)."""
    return await status_handler({})


@mcp.tool(name="system_ping")
@rate_limit
async def system_ping() -> dict[str, Any]:
    """Ping the SonarQube instance. The data is "pong" when it is reachable."""
    return await ping_handler({})
