from sonarqube_mcp.utils.retry import retry
from sonarqube_mcp.utils.timing import Stopwatch

__all__ = ["retry", "Stopwatch"]
