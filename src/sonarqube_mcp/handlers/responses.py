"""Structured tool responses.

Tools always return one of these dicts; permission denials and handler
failures are reported as data with an ``error_code``, never raised.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger("sonarqube_mcp")

PERMISSION_DENIED = "PERMISSION_DENIED"
PROJECT_ACCESS_DENIED = "PROJECT_ACCESS_DENIED"
UPSTREAM_ERROR = "UPSTREAM_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"


def success_response(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def error_response(message: str, error_code: str) -> dict[str, Any]:
    return {"success": False, "error": message, "error_code": error_code}


def permission_denied_response(tool: str, user_id: str, reason: str | None) -> dict[str, Any]:
    logger.warning("Tool access denied (tool=%s, user=%s): %s", tool, user_id, reason)
    return error_response(f"Access denied: {reason or 'not permitted'}", PERMISSION_DENIED)


def project_access_denied_response(project_key: str, reason: str | None) -> dict[str, Any]:
    message = f"Access denied to project '{project_key}'"
    if reason:
        message = f"{message}: {reason}"
    return error_response(message, PROJECT_ACCESS_DENIED)
