"""Permission rule model.

Rules are loaded once at startup (see ``sonarqube_mcp.auth.manager``) and are
read-only afterwards. JSON configuration uses camelCase field names
(``allowedProjects``); Python code uses the snake_case attributes.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, PositiveInt, StrictBool

from sonarqube_mcp.auth.project_access import matches_any

if TYPE_CHECKING:
    from sonarqube_mcp.auth.context import UserContext


class IssueSeverity(str, Enum):
    INFO = "INFO"
    MINOR = "MINOR"
    MAJOR = "MAJOR"
    CRITICAL = "CRITICAL"
    BLOCKER = "BLOCKER"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def rank_of(cls, value: str) -> int | None:
        """Ordinal of a raw severity string, None if it is not a known level."""
        try:
            return cls(value).rank
        except ValueError:
            return None


_SEVERITY_RANK = {
    IssueSeverity.INFO: 1,
    IssueSeverity.MINOR: 2,
    IssueSeverity.MAJOR: 3,
    IssueSeverity.CRITICAL: 4,
    IssueSeverity.BLOCKER: 5,
}


class IssueStatus(str, Enum):
    OPEN = "OPEN"
    CONFIRMED = "CONFIRMED"
    REOPENED = "REOPENED"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"
    TO_REVIEW = "TO_REVIEW"
    IN_REVIEW = "IN_REVIEW"
    REVIEWED = "REVIEWED"


class PermissionRule(BaseModel):
    """What a group of users may see and do.

    An empty or missing ``groups`` list makes the rule apply to everyone.
    ``denied_tools`` always wins over ``allowed_tools``.
    """

    groups: list[str] | None = None
    allowed_projects: list[str] = Field(alias="allowedProjects")
    allowed_tools: list[str] = Field(alias="allowedTools")
    denied_tools: list[str] | None = Field(alias="deniedTools", default=None)
    readonly: StrictBool
    max_severity: IssueSeverity | None = Field(alias="maxSeverity", default=None)
    allowed_statuses: list[IssueStatus] | None = Field(alias="allowedStatuses", default=None)
    hide_sensitive_data: StrictBool = Field(alias="hideSensitiveData", default=False)
    priority: int | float = 0

    model_config = {"populate_by_name": True}

    def applies_to(self, user: UserContext) -> bool:
        if not self.groups:
            return True
        return any(group in user.groups for group in self.groups)

    def allows_project(self, project_key: str) -> bool:
        return matches_any(project_key, self.allowed_projects)

    def denies_tool(self, tool: str) -> bool:
        return bool(self.denied_tools) and tool in self.denied_tools


class DefaultRule(BaseModel):
    """Partial rule used when no group-specific rule matches."""

    allowed_projects: list[str] | None = Field(alias="allowedProjects", default=None)
    allowed_tools: list[str] | None = Field(alias="allowedTools", default=None)
    denied_tools: list[str] | None = Field(alias="deniedTools", default=None)
    readonly: StrictBool | None = None
    max_severity: IssueSeverity | None = Field(alias="maxSeverity", default=None)
    allowed_statuses: list[IssueStatus] | None = Field(alias="allowedStatuses", default=None)
    hide_sensitive_data: StrictBool | None = Field(alias="hideSensitiveData", default=None)

    model_config = {"populate_by_name": True}

    def to_rule(self) -> PermissionRule:
        return PermissionRule(
            allowed_projects=list(self.allowed_projects or []),
            allowed_tools=list(self.allowed_tools or []),
            denied_tools=self.denied_tools,
            readonly=True if self.readonly is None else self.readonly,
            max_severity=self.max_severity,
            allowed_statuses=self.allowed_statuses,
            hide_sensitive_data=bool(self.hide_sensitive_data),
            priority=-1,
        )


class PermissionConfig(BaseModel):
    rules: list[PermissionRule]
    default_rule: DefaultRule | None = Field(alias="defaultRule", default=None)
    enable_caching: StrictBool = Field(alias="enableCaching", default=False)
    cache_ttl: PositiveInt = Field(alias="cacheTtl", default=300)
    enable_audit: StrictBool = Field(alias="enableAudit", default=False)

    model_config = {"populate_by_name": True}
