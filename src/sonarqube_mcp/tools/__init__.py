"""Importing this package registers every tool with the server."""

from sonarqube_mcp.tools import (  # noqa: F401
    components,
    hotspots,
    issues,
    measures,
    metrics,
    projects,
    quality_gates,
    source_code,
    system,
)
