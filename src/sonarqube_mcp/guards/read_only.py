"""Guard that blocks write operations when read-only mode is enabled."""

from sonarqube_mcp.lifespan import get_settings
from sonarqube_mcp.sonarqube.errors import SonarQubePermissionError


def check_read_only() -> None:
    """Raise SonarQubePermissionError if SONARQUBE_READ_ONLY_MODE is true."""
    settings = get_settings()
    if settings.read_only_mode:
        raise SonarQubePermissionError(
            "Write operation blocked: SONARQUBE_READ_ONLY_MODE is enabled."
        )
