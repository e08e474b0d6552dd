"""Measure tools: current values and history of metrics."""

from __future__ import annotations

from typing import Any

from sonarqube_mcp.guards.rate_limit import rate_limit
from sonarqube_mcp.handlers.wrapper import permission_aware
from sonarqube_mcp.lifespan import get_sonarqube_client
from sonarqube_mcp.server import mcp


@permission_aware("measures_component")
async def component_measures_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().get_component_measures(
        params["component"], params["metric_keys"], branch=params.get("branch")
    )


@permission_aware("measures_components")
async def components_measures_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().get_components_measures(
        params["component_keys"], params["metric_keys"]
    )


@permission_aware("measures_history")
async def measures_history_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await get_sonarqube_client().get_measures_history(
        params["component"],
        params["metrics"],
        from_date=params.get("from_date"),
        to_date=params.get("to_date"),
    )


@mcp.tool(name="measures_component")
@rate_limit
async def measures_component(
    component: str, metric_keys: list[str], branch: str | None = None
) -> dict[str, Any]:
    """Get measures for one component.

    Args:
        component: Component key, e.g. "my-project" or "my-project:src/app.py".
        metric_keys: Metric keys, e.g. ["coverage", "bugs", "ncloc"].
        branch: Branch name. Optional.
    """
    return await component_measures_handler(
        {"component": component, "metric_keys": metric_keys, "branch": branch}
    )


@mcp.tool(name="measures_components")
@rate_limit
async def measures_components(component_keys: list[str], metric_keys: list[str]) -> dict[str, Any]:
    """Get measures for several projects at once.

    Args:
        component_keys: Project keys.
        metric_keys: Metric keys.
    """
    return await components_measures_handler(
        {"component_keys": component_keys, "metric_keys": metric_keys}
    )


@mcp.tool(name="measures_history")
@rate_limit
async def measures_history(
    component: str,
    metrics: list[str],
    from_date: str | None = None,
    to_date: str | None = None,
) -> dict[str, Any]:
    """Get the history of metric values for a component.

    Args:
        component: Component key.
        metrics: Metric keys.
        from_date: ISO date lower bound. Optional.
        to_date: ISO date upper bound. Optional.
    """
    return await measures_history_handler(
        {"component": component, "metrics": metrics, "from_date": from_date, "to_date": to_date}
    )
