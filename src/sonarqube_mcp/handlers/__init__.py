from sonarqube_mcp.handlers.responses import (
    INTERNAL_ERROR,
    PERMISSION_DENIED,
    PROJECT_ACCESS_DENIED,
    UPSTREAM_ERROR,
    error_response,
    success_response,
)
from sonarqube_mcp.handlers.wrapper import (
    HandlerContext,
    ResultShape,
    create_permission_aware_handler,
    permission_aware,
    result_shape_for,
)

__all__ = [
    "INTERNAL_ERROR",
    "PERMISSION_DENIED",
    "PROJECT_ACCESS_DENIED",
    "UPSTREAM_ERROR",
    "error_response",
    "success_response",
    "HandlerContext",
    "ResultShape",
    "create_permission_aware_handler",
    "permission_aware",
    "result_shape_for",
]
