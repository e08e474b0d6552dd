"""SonarQube MCP server with group-based tool and project permissions."""

from sonarqube_mcp.auth.service import PermissionService
from sonarqube_mcp.server import mcp
from sonarqube_mcp.settings import SonarQubeSettings
from sonarqube_mcp.sonarqube.client import SonarQubeClient

__all__ = ["mcp", "PermissionService", "SonarQubeSettings", "SonarQubeClient"]
