"""Permission service: rule selection, access checks, result filtering, audit."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from cachetools import TTLCache
from pydantic import BaseModel, Field

from sonarqube_mcp.auth.audit import AuditEvent, AuditEventType, AuditSink, LoggingAuditSink
from sonarqube_mcp.auth.context import UserContext, extract_user_context
from sonarqube_mcp.auth.project_access import item_key
from sonarqube_mcp.auth.rules import IssueSeverity, PermissionConfig, PermissionRule
from sonarqube_mcp.guards.permissions import ToolOperation, operation_for

logger = logging.getLogger("sonarqube_mcp")

T = TypeVar("T")
IssueT = TypeVar("IssueT", bound=MutableMapping[str, Any])

AUDIT_LOG_LIMIT = 1000
CACHE_MAX_ENTRIES = 10000
REDACTED = "[REDACTED]"
NO_RULE_REASON = "No applicable permission rule found"

_COMMENT_FIELDS = ("login", "htmlText", "markdown")


class PermissionCheckResult(BaseModel):
    allowed: bool
    reason: str | None = None
    applied_rule: PermissionRule | None = None
    resource: str | None = None

    model_config = {"frozen": True}


class PermissionAuditEntry(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str
    groups: list[str]
    action: str
    resource: str
    allowed: bool
    reason: str | None = None
    applied_rule: str | None = None


def redact_sensitive_data(issue: MutableMapping[str, Any]) -> None:
    """Blank out author, assignee, comment text and changelog, in place.

    Only fields already present are touched, so applying it twice is a no-op.
    """
    if "author" in issue:
        issue["author"] = REDACTED
    if "assignee" in issue:
        issue["assignee"] = REDACTED
    comments = issue.get("comments")
    if isinstance(comments, list):
        for comment in comments:
            if isinstance(comment, MutableMapping):
                for field in _COMMENT_FIELDS:
                    comment[field] = REDACTED
    if isinstance(issue.get("changelog"), list):
        issue["changelog"] = []


class PermissionService:
    """Answers "may this user do X" for one loaded ``PermissionConfig``.

    Decisions are cached per ``(user, kind, resource)`` for ``cache_ttl``
    seconds when caching is enabled, at most ``CACHE_MAX_ENTRIES`` of them.
    With auditing enabled every decision is kept in a bounded in-memory log
    and forwarded to the audit sink; a failing sink is logged and otherwise
    ignored.
    """

    def __init__(
        self,
        config: PermissionConfig,
        audit_sink: AuditSink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self._audit_sink: AuditSink = audit_sink or LoggingAuditSink()
        self._cache: TTLCache[tuple[str, str, str], PermissionCheckResult] | None = (
            TTLCache(maxsize=CACHE_MAX_ENTRIES, ttl=config.cache_ttl, timer=clock)
            if config.enable_caching
            else None
        )
        self._audit_log: deque[PermissionAuditEntry] = deque(maxlen=AUDIT_LOG_LIMIT)
        # Stable: equal priorities keep their configured order
        self._sorted_rules = sorted(config.rules, key=lambda r: r.priority, reverse=True)
        self._default_rule = config.default_rule.to_rule() if config.default_rule else None

    @staticmethod
    def extract_user_context(claims: Mapping[str, Any]) -> UserContext:
        return extract_user_context(claims)

    def find_applicable_rule(self, user: UserContext) -> PermissionRule | None:
        for rule in self._sorted_rules:
            if rule.applies_to(user):
                return rule
        return self._default_rule

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    async def check_tool_access(self, user: UserContext, tool: str) -> PermissionCheckResult:
        cache_key = (user.user_id, "tool", tool)
        cached = self._cached(cache_key)
        if cached is not None:
            return cached

        rule = self.find_applicable_rule(user)
        if rule is None:
            result = PermissionCheckResult(allowed=False, reason=NO_RULE_REASON, resource=tool)
        elif rule.denies_tool(tool):
            result = PermissionCheckResult(
                allowed=False,
                reason=f"Tool '{tool}' is explicitly denied",
                applied_rule=rule,
                resource=tool,
            )
        elif tool not in rule.allowed_tools:
            result = PermissionCheckResult(
                allowed=False,
                reason=f"Tool '{tool}' is not in allowed tools list",
                applied_rule=rule,
                resource=tool,
            )
        elif rule.readonly and operation_for(tool) is ToolOperation.WRITE:
            result = PermissionCheckResult(
                allowed=False,
                reason="Write operations are not allowed for read-only users",
                applied_rule=rule,
                resource=tool,
            )
        else:
            result = PermissionCheckResult(allowed=True, applied_rule=rule, resource=tool)

        await self._audit(user, f"access_tool:{tool}", tool, result)
        self._store(cache_key, result)
        return result

    async def check_project_access(
        self, user: UserContext, project_key: str
    ) -> PermissionCheckResult:
        cache_key = (user.user_id, "project", project_key)
        cached = self._cached(cache_key)
        if cached is not None:
            return cached

        rule = self.find_applicable_rule(user)
        if rule is None:
            result = PermissionCheckResult(
                allowed=False, reason=NO_RULE_REASON, resource=project_key
            )
        elif rule.allows_project(project_key):
            result = PermissionCheckResult(allowed=True, applied_rule=rule, resource=project_key)
        else:
            result = PermissionCheckResult(
                allowed=False,
                reason=f"Project '{project_key}' does not match any allowed patterns",
                applied_rule=rule,
                resource=project_key,
            )

        await self._audit(user, "access_project", project_key, result)
        self._store(cache_key, result)
        return result

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def filter_projects(self, user: UserContext, projects: Sequence[T]) -> list[T]:
        rule = self.find_applicable_rule(user)
        if rule is None or not rule.allowed_projects:
            return []

        visible: list[T] = []
        for project in projects:
            key = item_key(project)
            if key is not None and rule.allows_project(key):
                visible.append(project)
            else:
                logger.debug("Filtered out project %s for user %s", key, user.user_id)
        return visible

    def filter_issues(self, user: UserContext, issues: Sequence[IssueT]) -> list[IssueT]:
        """Drop issues above the severity ceiling or outside the allowed statuses.

        Kept issues are redacted in place when the rule hides sensitive data.
        """
        rule = self.find_applicable_rule(user)
        if rule is None:
            return []

        ceiling = rule.max_severity.rank if rule.max_severity else None
        statuses = {s.value for s in rule.allowed_statuses or ()}
        visible: list[IssueT] = []
        for issue in issues:
            severity = issue.get("severity")
            if ceiling is not None and severity:
                rank = IssueSeverity.rank_of(severity)
                if rank is None or rank > ceiling:
                    logger.debug(
                        "Filtered out issue %s due to severity %s", issue.get("key"), severity
                    )
                    continue

            status = issue.get("status")
            if statuses and status and status not in statuses:
                logger.debug("Filtered out issue %s due to status %s", issue.get("key"), status)
                continue

            if rule.hide_sensitive_data:
                redact_sensitive_data(issue)
            visible.append(issue)
        return visible

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _cached(self, key: tuple[str, str, str]) -> PermissionCheckResult | None:
        if self._cache is None:
            return None
        return self._cache.get(key)

    def _store(self, key: tuple[str, str, str], result: PermissionCheckResult) -> None:
        if self._cache is not None:
            self._cache[key] = result

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    async def _audit(
        self, user: UserContext, action: str, resource: str, result: PermissionCheckResult
    ) -> None:
        if not self.config.enable_audit:
            return

        self._audit_log.append(
            PermissionAuditEntry(
                user_id=user.user_id,
                groups=list(user.groups),
                action=action,
                resource=resource,
                allowed=result.allowed,
                reason=result.reason,
                applied_rule=(
                    result.applied_rule.model_dump_json(by_alias=True, exclude_none=True)
                    if result.applied_rule
                    else None
                ),
            )
        )
        logger.debug(
            "Permission check user=%s action=%s resource=%s allowed=%s reason=%s",
            user.user_id,
            action,
            resource,
            result.allowed,
            result.reason,
        )

        event_type = (
            AuditEventType.PERMISSION_GRANTED if result.allowed else AuditEventType.PERMISSION_DENIED
        )
        await self.record_event(
            AuditEvent.for_user(
                event_type,
                user,
                target_type="permission",
                target_id=resource,
                action=action,
                result="success" if result.allowed else "failure",
                reason=result.reason,
            )
        )

    async def record_event(self, event: AuditEvent) -> None:
        if not self.config.enable_audit:
            return
        try:
            await self._audit_sink.log_event(event)
        except Exception as e:
            logger.error("Failed to forward %s event to audit sink: %s", event.event_type.value, e)

    def get_audit_log(self) -> list[PermissionAuditEntry]:
        return list(self._audit_log)
