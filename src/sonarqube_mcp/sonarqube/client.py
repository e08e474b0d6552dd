"""Async SonarQube Web API client using httpx."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sonarqube_mcp.sonarqube.errors import (
    SonarQubeAPIError,
    SonarQubeAuthenticationError,
    SonarQubeNotFoundError,
    SonarQubePermissionError,
    SonarQubeValidationError,
)
from sonarqube_mcp.utils.retry import retry

logger = logging.getLogger("sonarqube_mcp")

_ERROR_MAP: dict[int, type[SonarQubeAPIError]] = {
    400: SonarQubeValidationError,
    401: SonarQubeAuthenticationError,
    403: SonarQubePermissionError,
    404: SonarQubeNotFoundError,
}

# Issue transitions accepted by /api/issues/do_transition
TRANSITION_FALSE_POSITIVE = "falsepositive"
TRANSITION_WONT_FIX = "wontfix"
TRANSITION_CONFIRM = "confirm"
TRANSITION_UNCONFIRM = "unconfirm"
TRANSITION_RESOLVE = "resolve"
TRANSITION_REOPEN = "reopen"


def _clean_params(params: dict[str, Any]) -> dict[str, Any]:
    """Drop unset values and comma-join lists, as the Web API expects."""
    cleaned: dict[str, Any] = {}
    for name, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                continue
            value = ",".join(str(v) for v in value)
        elif isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[name] = value
    return cleaned


class SonarQubeClient:
    """Async wrapper around the SonarQube / SonarCloud Web API."""

    def __init__(
        self,
        base_url: str,
        token: str,
        organization: str | None = None,
        timeout: int = 30,
        ssl_verify: bool | str = True,
    ):
        self._base_url = base_url.rstrip("/")
        self._organization = organization
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api",
            headers={"Accept": "application/json", "Authorization": f"Bearer {token}"},
            timeout=timeout,
            verify=ssl_verify,
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    def _with_organization(self, params: dict[str, Any]) -> dict[str, Any]:
        if self._organization and "organization" not in params:
            params = {**params, "organization": self._organization}
        return _clean_params(params)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._client.request(method, path, **kwargs)
        if response.status_code >= 400:
            body = response.text
            error_cls = _ERROR_MAP.get(response.status_code)
            message = f"SonarQube API {method} {path} failed ({response.status_code}): {body}"
            if error_cls is None:
                raise SonarQubeAPIError(message, status_code=response.status_code)
            raise error_cls(message)
        if response.status_code == 204 or not response.content:
            return None
        if "json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    @retry()
    async def _get(self, path: str, **params: Any) -> Any:
        return await self._request("GET", path, params=self._with_organization(params))

    async def _post(self, path: str, **data: Any) -> Any:
        return await self._request("POST", path, data=self._with_organization(data))

    # ------------------------------------------------------------------
    # Projects and metrics
    # ------------------------------------------------------------------

    async def list_projects(
        self, page: int | None = None, page_size: int | None = None
    ) -> dict[str, Any]:
        return await self._get("/projects/search", p=page, ps=page_size)

    async def list_metrics(
        self, page: int | None = None, page_size: int | None = None
    ) -> dict[str, Any]:
        return await self._get("/metrics/search", p=page, ps=page_size)

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def search_issues(self, **params: Any) -> dict[str, Any]:
        """Search issues. Keyword names are Web API parameter names."""
        return await self._get("/issues/search", **params)

    async def do_transition(self, issue_key: str, transition: str) -> dict[str, Any]:
        return await self._post("/issues/do_transition", issue=issue_key, transition=transition)

    async def add_comment(self, issue_key: str, text: str) -> dict[str, Any]:
        return await self._post("/issues/add_comment", issue=issue_key, text=text)

    async def assign_issue(self, issue_key: str, assignee: str | None) -> dict[str, Any]:
        return await self._post("/issues/assign", issue=issue_key, assignee=assignee)

    # ------------------------------------------------------------------
    # System
    # ------------------------------------------------------------------

    async def get_health(self) -> dict[str, Any]:
        return await self._get("/system/health")

    async def get_status(self) -> dict[str, Any]:
        return await self._get("/system/status")

    async def ping(self) -> str:
        return await self._get("/system/ping")

    # ------------------------------------------------------------------
    # Measures
    # ------------------------------------------------------------------

    async def get_component_measures(
        self, component: str, metric_keys: list[str], branch: str | None = None
    ) -> dict[str, Any]:
        return await self._get(
            "/measures/component", component=component, metricKeys=metric_keys, branch=branch
        )

    async def get_components_measures(
        self, project_keys: list[str], metric_keys: list[str]
    ) -> dict[str, Any]:
        return await self._get("/measures/search", projectKeys=project_keys, metricKeys=metric_keys)

    async def get_measures_history(
        self,
        component: str,
        metrics: list[str],
        from_date: str | None = None,
        to_date: str | None = None,
    ) -> dict[str, Any]:
        return await self._get(
            "/measures/search_history",
            component=component,
            metrics=metrics,
            **{"from": from_date, "to": to_date},
        )

    # ------------------------------------------------------------------
    # Quality gates
    # ------------------------------------------------------------------

    async def list_quality_gates(self) -> dict[str, Any]:
        return await self._get("/qualitygates/list")

    async def get_quality_gate(self, gate_id: str) -> dict[str, Any]:
        return await self._get("/qualitygates/show", id=gate_id)

    async def get_project_quality_gate_status(
        self, project_key: str, branch: str | None = None
    ) -> dict[str, Any]:
        return await self._get("/qualitygates/project_status", projectKey=project_key, branch=branch)

    # ------------------------------------------------------------------
    # Source code
    # ------------------------------------------------------------------

    async def get_source_code(self, key: str, branch: str | None = None) -> str:
        return await self._get("/sources/raw", key=key, branch=branch)

    async def get_scm_blame(
        self, key: str, from_line: int | None = None, to_line: int | None = None
    ) -> dict[str, Any]:
        return await self._get("/sources/scm", key=key, **{"from": from_line, "to": to_line})

    # ------------------------------------------------------------------
    # Hotspots
    # ------------------------------------------------------------------

    async def search_hotspots(self, **params: Any) -> dict[str, Any]:
        return await self._get("/hotspots/search", **params)

    async def get_hotspot(self, hotspot_key: str) -> dict[str, Any]:
        return await self._get("/hotspots/show", hotspot=hotspot_key)

    async def change_hotspot_status(
        self,
        hotspot_key: str,
        status: str,
        resolution: str | None = None,
        comment: str | None = None,
    ) -> None:
        await self._post(
            "/hotspots/change_status",
            hotspot=hotspot_key,
            status=status,
            resolution=resolution,
            comment=comment,
        )

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    async def search_components(self, **params: Any) -> dict[str, Any]:
        return await self._get("/components/search", **params)

    async def get_component_tree(self, component: str, **params: Any) -> dict[str, Any]:
        return await self._get("/components/tree", component=component, **params)

    async def show_component(self, component: str) -> dict[str, Any]:
        return await self._get("/components/show", component=component)
