"""Quality gate tools."""

from __future__ import annotations

from typing import Any

from sonarqube_mcp.guards.rate_limit import rate_limit
from sonarqube_mcp.handlers.wrapper import permission_aware
from sonarqube_mcp.lifespan import get_sonarqube_client
from sonarqube_mcp.server import mcp


@permission_aware("quality_gates")
async def list_quality_gates_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().list_quality_gates()


@permission_aware("quality_gate")
async def quality_gate_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().get_quality_gate(params["id"])


@permission_aware("quality_gate_status")
async def quality_gate_status_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().get_project_quality_gate_status(
        params["project_key"], branch=params.get("branch")
    )


@mcp.tool(name="quality_gates")
@rate_limit
async def quality_gates() -> dict[str, Any]:
    """List the quality gates defined on the server."""
    return await list_quality_gates_handler({})


@mcp.tool(name="quality_gate")
@rate_limit
async def quality_gate(id: str) -> dict[str, Any]:
    """Get one quality gate with its conditions.

    Args:
        id: Quality gate id.
    """
    return await quality_gate_handler({"id": id})


@mcp.tool(name="quality_gate_status")
@rate_limit
async def quality_gate_status(project_key: str, branch: str | None = None) -> dict[str, Any]:
    """Get the quality gate status of a project.

    Args:
        project_key: Project key.
        branch: Branch name. Optional.

    Returns:
        projectStatus with status (OK, WARN, ERROR) and per-condition results.
    """
    return await quality_gate_status_handler({"project_key": project_key, "branch": branch})
