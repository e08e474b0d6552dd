"""Security hotspot tools."""

from typing import Any, Literal

from sonarqube_mcp.guards.rate_limit import rate_limit
from sonarqube_mcp.guards.read_only import check_read_only
from sonarqube_mcp.handlers.wrapper import permission_aware
from sonarqube_mcp.lifespan import get_sonarqube_client
from sonarqube_mcp.server import mcp

HotspotStatus = Literal["TO_REVIEW", "REVIEWED"]
HotspotResolution = Literal["FIXED", "SAFE", "ACKNOWLEDGED"]


@permission_aware("hotspots")
async def search_hotspots_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().search_hotspots(
        projectKey=params.get("project_key"),
        branch=params.get("branch"),
        status=params.get("status"),
        resolution=params.get("resolution"),
        files=params.get("files"),
        onlyMine=params.get("only_mine"),
        inNewCodePeriod=params.get("in_new_code_period"),
        p=params.get("page"),
        ps=params.get("page_size"),
    )


@permission_aware("hotspot")
async def hotspot_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().get_hotspot(params["hotspot_key"])


@permission_aware("update_hotspot_status")
async def update_hotspot_status_handler(params: dict[str, Any]) -> dict[str, Any]:
    check_read_only()
    await get_sonarqube_client().change_hotspot_status(
        params["hotspot_key"],
        params["status"],
        resolution=params.get("resolution"),
        comment=params.get("comment"),
    )
    return {"hotspot_key": params["hotspot_key"], "status": params["status"]}


@mcp.tool(name="hotspots")
@rate_limit
async def hotspots(
    project_key: str | None = None,
    branch: str | None = None,
    status: HotspotStatus | None = None,
    resolution: HotspotResolution | None = None,
    files: list[str] | None = None,
    only_mine: bool | None = None,
    in_new_code_period: bool | None = None,
    page: int | None = None,
    page_size: int | None = None,
) -> dict[str, Any]:
    """Search security hotspots.

    Args:
        project_key: Project key. Optional.
        branch: Branch name. Optional.
        status: TO_REVIEW or REVIEWED. Optional.
        resolution: Resolution of reviewed hotspots. Optional.
        files: File paths to restrict to. Optional.
        only_mine: Only hotspots assigned to the token owner. Optional.
        in_new_code_period: Only hotspots in the new code period. Optional.
        page: 1-based page number. Optional.
        page_size: Page size. Optional.

    Returns:
        Hotspots in projects the caller may access.
    """
    return await search_hotspots_handler(
        {
            "project_key": project_key,
            "branch": branch,
            "status": status,
            "resolution": resolution,
            "files": files,
            "only_mine": only_mine,
            "in_new_code_period": in_new_code_period,
            "page": page,
            "page_size": page_size,
        }
    )


@mcp.tool(name="hotspot")
@rate_limit
async def hotspot(hotspot_key: str) -> dict[str, Any]:
    """Get the details of one security hotspot.

    Args:
        hotspot_key: Hotspot key.
    """
    return await hotspot_handler({"hotspot_key": hotspot_key})


@mcp.tool(name="update_hotspot_status")
@rate_limit
async def update_hotspot_status(
    hotspot_key: str,
    status: HotspotStatus,
    resolution: HotspotResolution | None = None,
    comment: str | None = None,
) -> dict[str, Any]:
    """Change the review status of a security hotspot.

    Args:
        hotspot_key: Hotspot key.
        status: New status.
        resolution: Required when status is REVIEWED. Optional otherwise.
        comment: Review comment. Optional.
    """
    return await update_hotspot_status_handler(
        {"hotspot_key": hotspot_key, "status": status, "resolution": resolution, "comment": comment}
    )
