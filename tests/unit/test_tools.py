"""Tests for tool handlers using a mocked SonarQubeClient."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from helpers import make_config
from sonarqube_mcp.auth.context import RequestContext, UserContext, request_scope
from sonarqube_mcp.auth.service import PermissionService
from sonarqube_mcp.guards.permissions import ALL_TOOLS
from sonarqube_mcp.handlers import PERMISSION_DENIED, UPSTREAM_ERROR
from sonarqube_mcp.tools import components, hotspots, issues, measures, projects, source_code


@pytest.fixture
def mock_client():
    return AsyncMock()


@pytest.fixture(autouse=True)
def _wire(mock_client):
    """Point every tool module at the mock client, with permissions off by default."""
    settings = type("S", (), {"read_only_mode": False})()
    modules = (components, hotspots, issues, measures, projects, source_code)
    patches = [patch.object(m, "get_sonarqube_client", return_value=mock_client) for m in modules]
    patches.append(patch("sonarqube_mcp.guards.read_only.get_settings", return_value=settings))
    patches.append(patch("sonarqube_mcp.lifespan.get_permission_service", return_value=None))
    for p in patches:
        p.start()
    yield
    for p in reversed(patches):
        p.stop()


def _enable_permissions(**rule):
    service = PermissionService(
        make_config(
            {"allowedProjects": ["^dev-"], "allowedTools": sorted(ALL_TOOLS), "readonly": False, **rule}
        )
    )
    return patch("sonarqube_mcp.lifespan.get_permission_service", return_value=service)


def _as(user_id: str = "alice"):
    return request_scope(RequestContext(user_context=UserContext(user_id=user_id)))


class TestIssueSearch:
    def test_params_map_to_web_api_names(self):
        query = issues.search_params(
            {
                "project_key": "dev-1",
                "severity": "MAJOR",
                "authors": ["bob"],
                "created_after": "2024-01-01",
                "in_new_code_period": True,
                "page_size": 100,
            }
        )
        assert query["componentKeys"] == "dev-1"
        assert query["severities"] == ["MAJOR"]
        assert query["author"] == ["bob"]
        assert query["createdAfter"] == "2024-01-01"
        assert query["inNewCodePeriod"] is True
        assert query["ps"] == 100

    def test_severities_win_over_single_severity(self):
        query = issues.search_params({"severity": "MAJOR", "severities": ["INFO"]})
        assert query["severities"] == ["INFO"]

    @pytest.mark.asyncio
    async def test_search_filters_for_caller(self, mock_client):
        mock_client.search_issues.return_value = {
            "total": 2,
            "issues": [
                {"key": "1", "project": "dev-1", "severity": "MINOR"},
                {"key": "2", "project": "dev-1", "severity": "BLOCKER"},
            ],
        }
        with _enable_permissions(maxSeverity="MAJOR"), _as():
            result = await issues.search_issues_handler({"project_key": "dev-1"})
        assert result["success"] is True
        assert [i["key"] for i in result["data"]["issues"]] == ["1"]
        assert result["data"]["total"] == 1
        mock_client.search_issues.assert_awaited_once()
        assert mock_client.search_issues.await_args.kwargs["componentKeys"] == "dev-1"


class TestIssueTransitions:
    @pytest.mark.asyncio
    async def test_false_positive_with_comment(self, mock_client):
        mock_client.do_transition.return_value = {"issue": {"key": "AX1"}}
        result = await issues.mark_false_positive_handler({"issue_key": "AX1", "comment": "test code"})
        assert result == {"success": True, "data": {"issue": {"key": "AX1"}}}
        mock_client.add_comment.assert_awaited_once_with("AX1", "test code")
        mock_client.do_transition.assert_awaited_once_with("AX1", "falsepositive")

    @pytest.mark.asyncio
    async def test_bulk_wont_fix(self, mock_client):
        mock_client.do_transition.side_effect = lambda key, t: {"issue": {"key": key}}
        result = await issues.mark_many_wont_fix_handler({"issue_keys": ["A", "B"], "comment": None})
        assert [r["issue"]["key"] for r in result["data"]] == ["A", "B"]
        mock_client.add_comment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_read_only_mode_blocks_writes(self, mock_client):
        settings = type("S", (), {"read_only_mode": True})()
        with patch("sonarqube_mcp.guards.read_only.get_settings", return_value=settings):
            result = await issues.assign_handler({"issue_key": "AX1", "assignee": "bob"})
        assert result["error_code"] == UPSTREAM_ERROR
        assert "READ_ONLY_MODE" in result["error"]
        mock_client.assign_issue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_readonly_rule_blocks_writes(self, mock_client):
        with _enable_permissions(readonly=True), _as():
            result = await issues.reopen_handler({"issue_key": "AX1"})
        assert result["error_code"] == PERMISSION_DENIED
        mock_client.do_transition.assert_not_awaited()


class TestProjects:
    @pytest.mark.asyncio
    async def test_projects_are_normalized_and_filtered(self, mock_client):
        mock_client.list_projects.return_value = {
            "paging": {"pageIndex": 1, "pageSize": 100, "total": 2},
            "components": [
                {"key": "dev-1", "name": "Dev", "qualifier": "TRK", "lastAnalysisDate": "2024-05-01"},
                {"key": "prod-1", "name": "Prod"},
            ],
        }
        with _enable_permissions(), _as():
            result = await projects.list_projects_handler({})
        assert result["data"] == [
            {"key": "dev-1", "name": "Dev", "qualifier": "TRK", "lastAnalysisDate": "2024-05-01"}
        ]


class TestComponentsAndHotspots:
    @pytest.mark.asyncio
    async def test_search_defaults_to_projects(self, mock_client):
        mock_client.search_components.return_value = {"components": []}
        await components.components_handler({"query": "api"})
        mock_client.search_components.assert_awaited_once_with(
            q="api", qualifiers=["TRK"], p=None, ps=None
        )

    @pytest.mark.asyncio
    async def test_tree_and_show(self, mock_client):
        mock_client.get_component_tree.return_value = {"components": []}
        mock_client.show_component.return_value = {"component": {"key": "dev-1"}}
        await components.components_handler({"component": "dev-1", "strategy": "children"})
        result = await components.components_handler({"component": "dev-1"})
        mock_client.get_component_tree.assert_awaited_once()
        assert result["data"] == {"component": {"key": "dev-1"}}

    @pytest.mark.asyncio
    async def test_component_param_is_checked(self, mock_client):
        with _enable_permissions(), _as():
            result = await components.components_handler({"component": "prod-1"})
        assert result["success"] is False
        mock_client.show_component.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_hotspot_status_update(self, mock_client):
        result = await hotspots.update_hotspot_status_handler(
            {"hotspot_key": "H1", "status": "REVIEWED", "resolution": "SAFE"}
        )
        assert result["data"] == {"hotspot_key": "H1", "status": "REVIEWED"}
        mock_client.change_hotspot_status.assert_awaited_once_with(
            "H1", "REVIEWED", resolution="SAFE", comment=None
        )


class TestSourceAndMeasures:
    @pytest.mark.asyncio
    async def test_source_code_is_gated_by_component(self, mock_client):
        mock_client.get_source_code.return_value = "x = 1\n"
        with _enable_permissions(), _as():
            allowed = await source_code.source_code_handler({"component": "dev-1:app.py"})
            denied = await source_code.source_code_handler({"component": "prod-1:app.py"})
        assert allowed["data"] == "x = 1\n"
        assert denied["error_code"] == "PROJECT_ACCESS_DENIED"

    @pytest.mark.asyncio
    async def test_components_measures(self, mock_client):
        mock_client.get_components_measures.return_value = {"measures": []}
        await measures.components_measures_handler(
            {"component_keys": ["dev-1", "dev-2"], "metric_keys": ["bugs"]}
        )
        mock_client.get_components_measures.assert_awaited_once_with(["dev-1", "dev-2"], ["bugs"])
