from sonarqube_mcp.sonarqube.client import SonarQubeClient
from sonarqube_mcp.sonarqube.errors import (
    SonarQubeAPIError,
    SonarQubeAuthenticationError,
    SonarQubeNotFoundError,
    SonarQubePermissionError,
    SonarQubeValidationError,
)
from sonarqube_mcp.sonarqube.models import SonarQubePaging, SonarQubeProject, SonarQubeProjectsResult

__all__ = [
    "SonarQubeClient",
    "SonarQubeAPIError",
    "SonarQubeAuthenticationError",
    "SonarQubeNotFoundError",
    "SonarQubePermissionError",
    "SonarQubeValidationError",
    "SonarQubePaging",
    "SonarQubeProject",
    "SonarQubeProjectsResult",
]
