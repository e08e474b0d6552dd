"""Tests for PermissionService: rule selection, checks, filters, cache and audit."""

from __future__ import annotations

import pytest

from helpers import FailingSink, FakeClock, RecordingSink, make_config, make_user
from sonarqube_mcp.auth.audit import AuditEventType
from sonarqube_mcp.auth.service import (
    AUDIT_LOG_LIMIT,
    CACHE_MAX_ENTRIES,
    NO_RULE_REASON,
    REDACTED,
    PermissionService,
    redact_sensitive_data,
)

DEV_RULE = {
    "groups": ["dev"],
    "allowedProjects": ["^dev-.*"],
    "allowedTools": ["issues"],
    "readonly": False,
    "priority": 50,
}
DENY_ALL_DEFAULT = {"allowedProjects": [], "allowedTools": [], "readonly": True}


class TestRuleSelection:
    def test_highest_priority_matching_rule_wins(self):
        service = PermissionService(
            make_config(
                {"groups": ["dev"], "allowedProjects": ["a"], "allowedTools": [], "readonly": True, "priority": 1},
                {"groups": ["dev"], "allowedProjects": ["b"], "allowedTools": [], "readonly": True, "priority": 10},
            )
        )
        assert service.find_applicable_rule(make_user("u", "dev")).allowed_projects == ["b"]

    def test_equal_priority_keeps_configured_order(self):
        service = PermissionService(
            make_config(
                {"groups": ["dev"], "allowedProjects": ["first"], "allowedTools": [], "readonly": True},
                {"groups": ["dev"], "allowedProjects": ["second"], "allowedTools": [], "readonly": True},
            )
        )
        assert service.find_applicable_rule(make_user("u", "dev")).allowed_projects == ["first"]

    def test_rule_without_groups_applies_to_everyone(self):
        service = PermissionService(
            make_config({"allowedProjects": [".*"], "allowedTools": ["issues"], "readonly": True})
        )
        assert service.find_applicable_rule(make_user("nobody")) is not None

    def test_falls_back_to_default_rule(self):
        service = PermissionService(make_config(DEV_RULE, defaultRule={"allowedTools": ["projects"]}))
        rule = service.find_applicable_rule(make_user("guest", "visitors"))
        assert rule.allowed_tools == ["projects"]
        assert rule.allowed_projects == []
        assert rule.readonly is True
        assert rule.priority == -1

    def test_no_rule_at_all(self):
        service = PermissionService(make_config(DEV_RULE))
        assert service.find_applicable_rule(make_user("guest")) is None


class TestToolAccess:
    @pytest.mark.asyncio
    async def test_explicit_deny_wins_over_allow(self):
        service = PermissionService(
            make_config(
                {
                    "allowedProjects": [".*"],
                    "allowedTools": ["markIssueFalsePositive", "issues"],
                    "deniedTools": ["markIssueFalsePositive"],
                    "readonly": False,
                }
            )
        )
        user = make_user()
        denied = await service.check_tool_access(user, "markIssueFalsePositive")
        assert not denied.allowed
        assert denied.reason == "Tool 'markIssueFalsePositive' is explicitly denied"
        assert (await service.check_tool_access(user, "issues")).allowed

    @pytest.mark.asyncio
    async def test_tool_not_in_allow_list(self):
        service = PermissionService(make_config(DEV_RULE))
        result = await service.check_tool_access(make_user("u", "dev"), "hotspots")
        assert not result.allowed
        assert result.reason == "Tool 'hotspots' is not in allowed tools list"

    @pytest.mark.asyncio
    async def test_readonly_blocks_write_tools_only(self):
        service = PermissionService(
            make_config(
                {
                    "allowedProjects": [".*"],
                    "allowedTools": ["issues", "assignIssue", "update_hotspot_status"],
                    "readonly": True,
                }
            )
        )
        user = make_user()
        assert (await service.check_tool_access(user, "issues")).allowed
        for tool in ("assignIssue", "update_hotspot_status"):
            result = await service.check_tool_access(user, tool)
            assert not result.allowed
            assert result.reason == "Write operations are not allowed for read-only users"

    @pytest.mark.asyncio
    async def test_no_applicable_rule(self):
        service = PermissionService(make_config(DEV_RULE))
        result = await service.check_tool_access(make_user("outsider"), "issues")
        assert not result.allowed
        assert result.reason == NO_RULE_REASON
        assert result.applied_rule is None

    @pytest.mark.asyncio
    async def test_allowed_result_carries_rule(self):
        service = PermissionService(make_config(DEV_RULE))
        result = await service.check_tool_access(make_user("u", "dev"), "issues")
        assert result.allowed
        assert result.applied_rule.groups == ["dev"]
        assert result.resource == "issues"


class TestProjectAccess:
    @pytest.mark.asyncio
    async def test_dev_user_allowed_and_denied(self):
        service = PermissionService(make_config(DEV_RULE, defaultRule=DENY_ALL_DEFAULT))
        user = make_user("dana", "dev")
        assert (await service.check_project_access(user, "dev-42")).allowed
        denied = await service.check_project_access(user, "prod-1")
        assert not denied.allowed
        assert "does not match any allowed patterns" in denied.reason

    @pytest.mark.asyncio
    async def test_user_without_groups_gets_default_rule(self):
        service = PermissionService(make_config(DEV_RULE, defaultRule=DENY_ALL_DEFAULT))
        result = await service.check_project_access(make_user("anon"), "dev-42")
        assert not result.allowed
        assert result.applied_rule.priority == -1


class TestFilterProjects:
    def test_filters_by_pattern(self):
        service = PermissionService(make_config(DEV_RULE))
        projects = [{"key": "dev-1"}, {"key": "prod-1"}, {"key": "dev-2", "name": "Two"}]
        visible = service.filter_projects(make_user("u", "dev"), projects)
        assert [p["key"] for p in visible] == ["dev-1", "dev-2"]

    def test_no_rule_returns_nothing(self):
        service = PermissionService(make_config(DEV_RULE))
        assert service.filter_projects(make_user("u"), [{"key": "dev-1"}]) == []


class TestFilterIssues:
    def _service(self, **rule):
        return PermissionService(
            make_config({"allowedProjects": [".*"], "allowedTools": ["issues"], "readonly": True, **rule})
        )

    def test_severity_ceiling(self):
        service = self._service(maxSeverity="MAJOR")
        issues = [{"key": "1", "severity": "BLOCKER"}, {"key": "2", "severity": "MINOR"}]
        assert service.filter_issues(make_user(), issues) == [{"key": "2", "severity": "MINOR"}]

    def test_ceiling_is_inclusive_and_missing_severity_is_kept(self):
        service = self._service(maxSeverity="MAJOR")
        issues = [{"key": "1", "severity": "MAJOR"}, {"key": "2"}, {"key": "3", "severity": "CRITICAL"}]
        assert [i["key"] for i in service.filter_issues(make_user(), issues)] == ["1", "2"]

    def test_unknown_severity_is_dropped_under_a_ceiling(self):
        service = self._service(maxSeverity="BLOCKER")
        assert service.filter_issues(make_user(), [{"key": "1", "severity": "HIGH"}]) == []

    def test_no_ceiling_keeps_everything(self):
        service = self._service()
        issues = [{"key": "1", "severity": "BLOCKER"}, {"key": "2", "severity": "HIGH"}]
        assert len(service.filter_issues(make_user(), issues)) == 2

    def test_allowed_statuses(self):
        service = self._service(allowedStatuses=["OPEN", "CONFIRMED"])
        issues = [
            {"key": "1", "status": "OPEN"},
            {"key": "2", "status": "CLOSED"},
            {"key": "3", "status": "CONFIRMED"},
            {"key": "4"},
        ]
        assert [i["key"] for i in service.filter_issues(make_user(), issues)] == ["1", "3", "4"]

    def test_sensitive_data_is_redacted(self):
        service = self._service(hideSensitiveData=True)
        issue = {
            "key": "1",
            "author": "alice@example.com",
            "assignee": "bob",
            "comments": [{"login": "carol", "htmlText": "<p>hi</p>", "markdown": "hi", "key": "c1"}],
            "changelog": [{"diffs": []}],
        }
        [visible] = service.filter_issues(make_user(), [issue])
        assert visible["author"] == REDACTED
        assert visible["assignee"] == REDACTED
        assert visible["comments"][0] == {
            "login": REDACTED,
            "htmlText": REDACTED,
            "markdown": REDACTED,
            "key": "c1",
        }
        assert visible["changelog"] == []

    def test_no_rule_returns_nothing(self):
        service = PermissionService(make_config(DEV_RULE))
        assert service.filter_issues(make_user("u"), [{"key": "1"}]) == []


class TestRedaction:
    def test_idempotent_and_only_touches_present_fields(self):
        issue = {"key": "1", "author": "a"}
        redact_sensitive_data(issue)
        once = dict(issue)
        redact_sensitive_data(issue)
        assert issue == once == {"key": "1", "author": REDACTED}


class TestCache:
    def _service(self, clock, **options):
        return PermissionService(
            make_config(DEV_RULE, enableCaching=True, cacheTtl=60, **options), clock=clock
        )

    @pytest.mark.asyncio
    async def test_decision_is_reused_within_ttl(self):
        clock = FakeClock()
        service = self._service(clock)
        user = make_user("u", "dev")
        first = await service.check_tool_access(user, "issues")
        clock.advance(59)
        assert await service.check_tool_access(user, "issues") is first

    @pytest.mark.asyncio
    async def test_decision_expires_after_ttl(self):
        clock = FakeClock()
        service = self._service(clock)
        user = make_user("u", "dev")
        first = await service.check_project_access(user, "dev-1")
        clock.advance(60)
        second = await service.check_project_access(user, "dev-1")
        assert second is not first
        assert second == first

    @pytest.mark.asyncio
    async def test_expired_decisions_are_evicted(self):
        clock = FakeClock()
        service = PermissionService(
            make_config(DEV_RULE, enableCaching=True, cacheTtl=1), clock=clock
        )
        user = make_user("u", "dev")
        for i in range(5000):
            await service.check_project_access(user, f"dev-{i}")
        assert len(service._cache) == 5000

        clock.advance(3600)
        await service.check_project_access(user, "dev-late")
        assert list(service._cache) == [("u", "project", "dev-late")]

    @pytest.mark.asyncio
    async def test_cache_size_is_bounded(self):
        service = self._service(FakeClock())
        user = make_user("u", "dev")
        for i in range(CACHE_MAX_ENTRIES + 10):
            await service.check_project_access(user, f"dev-{i}")
        assert len(service._cache) == CACHE_MAX_ENTRIES

    @pytest.mark.asyncio
    async def test_cache_is_keyed_per_user(self):
        service = self._service(FakeClock())
        assert (await service.check_project_access(make_user("u", "dev"), "dev-1")).allowed
        assert not (await service.check_project_access(make_user("u2"), "dev-1")).allowed

    @pytest.mark.asyncio
    async def test_clear_cache(self):
        service = self._service(FakeClock())
        user = make_user("u", "dev")
        first = await service.check_tool_access(user, "issues")
        service.clear_cache()
        assert await service.check_tool_access(user, "issues") is not first

    @pytest.mark.asyncio
    async def test_disabled_cache_recomputes(self):
        service = PermissionService(make_config(DEV_RULE))
        user = make_user("u", "dev")
        first = await service.check_tool_access(user, "issues")
        assert await service.check_tool_access(user, "issues") is not first


class TestAudit:
    @pytest.mark.asyncio
    async def test_decisions_are_logged_and_forwarded(self):
        sink = RecordingSink()
        service = PermissionService(make_config(DEV_RULE, enableAudit=True), audit_sink=sink)
        user = make_user("u", "dev")
        await service.check_tool_access(user, "issues")
        await service.check_project_access(user, "prod-1")

        entries = service.get_audit_log()
        assert [(e.action, e.resource, e.allowed) for e in entries] == [
            ("access_tool:issues", "issues", True),
            ("access_project", "prod-1", False),
        ]
        assert '"allowedProjects"' in entries[0].applied_rule
        assert [e.event_type for e in sink.events] == [
            AuditEventType.PERMISSION_GRANTED,
            AuditEventType.PERMISSION_DENIED,
        ]
        assert sink.events[1].reason.startswith("Project 'prod-1'")

    @pytest.mark.asyncio
    async def test_audit_disabled_records_nothing(self):
        sink = RecordingSink()
        service = PermissionService(make_config(DEV_RULE), audit_sink=sink)
        await service.check_tool_access(make_user("u", "dev"), "issues")
        assert service.get_audit_log() == []
        assert sink.events == []

    @pytest.mark.asyncio
    async def test_log_is_bounded(self):
        service = PermissionService(make_config(DEV_RULE, enableAudit=True), audit_sink=RecordingSink())
        user = make_user("u", "dev")
        for i in range(AUDIT_LOG_LIMIT + 5):
            await service.check_project_access(user, f"dev-{i}")
        log = service.get_audit_log()
        assert len(log) == AUDIT_LOG_LIMIT
        assert log[0].resource == "dev-5"
        assert log[-1].resource == f"dev-{AUDIT_LOG_LIMIT + 4}"

    @pytest.mark.asyncio
    async def test_get_audit_log_returns_a_copy(self):
        service = PermissionService(make_config(DEV_RULE, enableAudit=True), audit_sink=RecordingSink())
        await service.check_tool_access(make_user("u", "dev"), "issues")
        service.get_audit_log().clear()
        assert len(service.get_audit_log()) == 1

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_affect_decision(self, caplog):
        service = PermissionService(make_config(DEV_RULE, enableAudit=True), audit_sink=FailingSink())
        result = await service.check_tool_access(make_user("u", "dev"), "issues")
        assert result.allowed
        assert "Failed to forward" in caplog.text


class TestExtractUserContext:
    def test_claims_to_user_context(self):
        user = PermissionService.extract_user_context(
            {
                "sub": "user-1",
                "iss": "https://idp.example.com",
                "groups": ["dev", "qa"],
                "roles": "admin, dev",
                "scope": "sonarqube:read sonarqube:write",
            }
        )
        assert user.user_id == "user-1"
        assert user.issuer == "https://idp.example.com"
        assert user.groups == ["dev", "qa", "admin"]
        assert user.scopes == ["sonarqube:read", "sonarqube:write"]
        assert user.claims["sub"] == "user-1"

    @pytest.mark.parametrize("claims", [{}, {"sub": "x", "groups": 7}, {"sub": "x", "scope": ["a"]}])
    def test_missing_or_malformed_claims(self, claims):
        user = PermissionService.extract_user_context(claims)
        assert user.groups == []
        assert user.scopes == []
