"""Component tools: search, tree navigation and details."""

from typing import Any, Literal

from sonarqube_mcp.guards.rate_limit import rate_limit
from sonarqube_mcp.handlers.wrapper import permission_aware
from sonarqube_mcp.lifespan import get_sonarqube_client
from sonarqube_mcp.server import mcp

TreeStrategy = Literal["all", "children", "leaves"]


@permission_aware("components")
async def components_handler(params: dict[str, Any]) -> dict[str, Any]:
    client = get_sonarqube_client()
    component = params.get("component")
    if component and params.get("strategy"):
        return await client.get_component_tree(
            component,
            strategy=params["strategy"],
            qualifiers=params.get("qualifiers"),
            q=params.get("query"),
            p=params.get("page"),
            ps=params.get("page_size"),
        )
    if component:
        return await client.show_component(component)
    return await client.search_components(
        q=params.get("query"),
        qualifiers=params.get("qualifiers") or ["TRK"],
        p=params.get("page"),
        ps=params.get("page_size"),
    )


@mcp.tool(name="components")
@rate_limit
async def components(
    query: str | None = None,
    qualifiers: list[str] | None = None,
    component: str | None = None,
    strategy: TreeStrategy | None = None,
    page: int | None = None,
    page_size: int | None = None,
) -> dict[str, Any]:
    """Search components, walk a component tree, or show one component.

    With ``component`` and ``strategy`` the component's tree is walked; with
    ``component`` alone its details are shown; otherwise components are
    searched (projects by default).

    Args:
        query: Text to match against key or name. Optional.
        qualifiers: Component qualifiers, e.g. ["TRK"], ["DIR", "FIL"]. Optional.
        component: Component key to show or walk. Optional.
        strategy: Tree strategy: all, children or leaves. Optional.
        page: 1-based page number. Optional.
        page_size: Page size. Optional.

    Returns:
        Components in projects the caller may access.
    """
    return await components_handler(
        {
            "query": query,
            "qualifiers": qualifiers,
            "component": component,
            "strategy": strategy,
            "page": page,
            "page_size": page_size,
        }
    )
