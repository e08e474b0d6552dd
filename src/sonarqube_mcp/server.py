"""FastMCP server instance."""

from fastmcp import FastMCP

from sonarqube_mcp.lifespan import lifespan

INSTRUCTIONS = """\
Tools for reading and triaging SonarQube / SonarCloud analysis results.
Every tool returns {"success": true, "data": ...} or
{"success": false, "error": ..., "error_code": ...}. When permissions are
configured, results only include projects, issues and hotspots the caller may
see; PERMISSION_DENIED and PROJECT_ACCESS_DENIED are final for that caller and
should not be retried.
"""

mcp = FastMCP("sonarqube-mcp", instructions=INSTRUCTIONS, lifespan=lifespan)
