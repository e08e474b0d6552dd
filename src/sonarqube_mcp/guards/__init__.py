from sonarqube_mcp.guards.permissions import (
    ALL_TOOLS,
    READ_TOOLS,
    WRITE_TOOLS,
    ToolOperation,
    operation_for,
)
from sonarqube_mcp.guards.rate_limit import rate_limit, reset_limiter

__all__ = [
    "ALL_TOOLS",
    "READ_TOOLS",
    "WRITE_TOOLS",
    "ToolOperation",
    "operation_for",
    "rate_limit",
    "reset_limiter",
]
