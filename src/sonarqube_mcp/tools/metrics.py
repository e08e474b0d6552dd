"""Metric tools: list metric definitions."""

from __future__ import annotations

from typing import Any

from sonarqube_mcp.guards.rate_limit import rate_limit
from sonarqube_mcp.handlers.wrapper import permission_aware
from sonarqube_mcp.lifespan import get_sonarqube_client
from sonarqube_mcp.server import mcp


@permission_aware("metrics")
async def list_metrics_handler(params: dict[str, Any]) -> dict[str, Any]:
    client = get_sonarqube_client()
    return await client.list_metrics(page=params.get("page"), page_size=params.get("page_size"))


@mcp.tool(name="metrics")
@rate_limit
async def metrics(page: int | None = None, page_size: int | None = None) -> dict[str, Any]:
    """Get the metrics available on the SonarQube server.

    Args:
        page: 1-based page number. Optional.
        page_size: Page size. Optional.
    """
    return await list_metrics_handler({"page": page, "page_size": page_size})
