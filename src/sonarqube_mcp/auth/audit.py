"""Audit events and the sink they are forwarded to."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field

from sonarqube_mcp.auth.context import UserContext


class AuditEventType(str, Enum):
    PERMISSION_GRANTED = "PERMISSION_GRANTED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    TOOL_INVOKED = "TOOL_INVOKED"
    TOOL_COMPLETED = "TOOL_COMPLETED"
    TOOL_FAILED = "TOOL_FAILED"
    DATA_FILTERED = "DATA_FILTERED"


class AuditEvent(BaseModel):
    event_type: AuditEventType
    user_id: str
    groups: list[str] = Field(default_factory=list)
    session_id: str | None = None
    target_type: str
    target_id: str
    action: str
    result: Literal["success", "failure", "partial"]
    reason: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_user(
        cls, event_type: AuditEventType, user: UserContext, **fields: Any
    ) -> AuditEvent:
        return cls(event_type=event_type, user_id=user.user_id, groups=list(user.groups), **fields)


class AuditSink(Protocol):
    async def log_event(self, event: AuditEvent) -> None: ...


class LoggingAuditSink:
    """Writes each event as one JSON line to the ``sonarqube_mcp.audit`` logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger("sonarqube_mcp.audit")

    async def log_event(self, event: AuditEvent) -> None:
        self._logger.info(event.model_dump_json(exclude_none=True))
