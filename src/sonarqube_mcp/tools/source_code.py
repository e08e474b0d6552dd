"""Source tools: raw source and SCM blame."""

from __future__ import annotations

from typing import Any

from sonarqube_mcp.guards.rate_limit import rate_limit
from sonarqube_mcp.handlers.wrapper import permission_aware
from sonarqube_mcp.lifespan import get_sonarqube_client
from sonarqube_mcp.server import mcp


@permission_aware("source_code")
async def source_code_handler(params: dict[str, Any]) -> str:
    return await get_sonarqube_client().get_source_code(
        params["component"], branch=params.get("branch")
    )


@permission_aware("scm_blame")
async def scm_blame_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().get_scm_blame(
        params["component"], from_line=params.get("from_line"), to_line=params.get("to_line")
    )


@mcp.tool(name="source_code")
@rate_limit
async def source_code(component: str, branch: str | None = None) -> dict[str, Any]:
    """Get the raw source of a file.

    Args:
        component: File key, e.g. "my-project:src/app.py".
        branch: Branch name. Optional.
    """
    return await source_code_handler({"component": component, "branch": branch})


@mcp.tool(name="scm_blame")
@rate_limit
async def scm_blame(
    component: str, from_line: int | None = None, to_line: int | None = None
) -> dict[str, Any]:
    """Get SCM blame for a file, optionally restricted to a line range.

    Args:
        component: File key.
        from_line: First line (1-based). Optional.
        to_line: Last line, inclusive. Optional.
    """
    return await scm_blame_handler(
        {"component": component, "from_line": from_line, "to_line": to_line}
    )
