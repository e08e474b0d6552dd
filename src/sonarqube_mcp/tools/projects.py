"""Project tools: list projects visible to the caller."""

from __future__ import annotations

from typing import Any

from sonarqube_mcp.guards.rate_limit import rate_limit
from sonarqube_mcp.handlers.wrapper import permission_aware
from sonarqube_mcp.lifespan import get_sonarqube_client
from sonarqube_mcp.server import mcp
from sonarqube_mcp.sonarqube.models import SonarQubeProjectsResult


@permission_aware("projects")
async def list_projects_handler(params: dict[str, Any]) -> list[dict[str, Any]]:
    client = get_sonarqube_client()
    result = await client.list_projects(page=params.get("page"), page_size=params.get("page_size"))
    parsed = SonarQubeProjectsResult.model_validate(result or {})
    return [p.model_dump(by_alias=True, exclude_none=True) for p in parsed.projects]


@mcp.tool(name="projects")
@rate_limit
async def projects(page: int | None = None, page_size: int | None = None) -> dict[str, Any]:
    """List SonarQube projects the caller may see.

    Listing all projects requires an admin token upstream; non-admin callers
    can use the components tool with qualifiers=["TRK"] instead.

    Args:
        page: 1-based page number. Optional.
        page_size: Page size (max 500). Optional.

    Returns:
        {"success": true, "data": [project, ...]} with key, name, qualifier,
        visibility and lastAnalysisDate per project, or an error payload.
    """
    return await list_projects_handler({"page": page, "page_size": page_size})
