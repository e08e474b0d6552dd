"""Permission-aware handler wrapper.

Every tool handler is wrapped here so that tool access, project access and
result filtering are enforced in one place, whatever the handler itself does.
The filtering applied to a tool's result is picked once, when the handler is
wrapped, from ``ResultShape``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any

from sonarqube_mcp.auth.audit import AuditEvent, AuditEventType
from sonarqube_mcp.auth.context import (
    RequestContext,
    UserContext,
    current_request_context,
    user_context_from_access_token,
)
from sonarqube_mcp.auth.errors import ProjectAccessDeniedError
from sonarqube_mcp.auth.project_access import check_project_access_for_params, extract_project_key
from sonarqube_mcp.auth.service import PermissionService
from sonarqube_mcp.handlers.responses import (
    INTERNAL_ERROR,
    UPSTREAM_ERROR,
    error_response,
    permission_denied_response,
    project_access_denied_response,
    success_response,
)
from sonarqube_mcp.sonarqube.errors import SonarQubeAPIError
from sonarqube_mcp.utils.timing import Stopwatch

logger = logging.getLogger("sonarqube_mcp")

HandlerContext = RequestContext
Handler = Callable[..., Awaitable[Any]]
ServiceProvider = Callable[[], "PermissionService | None"]
WrappedHandler = Callable[..., Awaitable[dict[str, Any]]]


class ResultShape(str, Enum):
    PROJECT_LIST = "project_list"
    ISSUES = "issues"
    COMPONENTS = "components"
    HOTSPOTS = "hotspots"
    PASSTHROUGH = "passthrough"


_RESULT_SHAPES = {
    "projects": ResultShape.PROJECT_LIST,
    "issues": ResultShape.ISSUES,
    "components": ResultShape.COMPONENTS,
    "hotspots": ResultShape.HOTSPOTS,
}


def result_shape_for(tool: str) -> ResultShape:
    # Measures, quality gate status, source and blame are gated by their parameters
    return _RESULT_SHAPES.get(tool, ResultShape.PASSTHROUGH)


def _default_service_provider() -> PermissionService | None:
    from sonarqube_mcp.lifespan import get_permission_service

    return get_permission_service()


def _accepts_context(handler: Handler) -> bool:
    try:
        parameters = list(inspect.signature(handler).parameters.values())
    except (TypeError, ValueError):
        return False
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in parameters):
        return True
    positional = [
        p
        for p in parameters
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    return len(positional) >= 2


def _resolve_user(context: HandlerContext | None) -> UserContext | None:
    if context is not None and context.user_context is not None:
        return context.user_context
    current = current_request_context()
    if current is not None and current.user_context is not None:
        return current.user_context
    return user_context_from_access_token()


def _project_of_hotspot(hotspot: Any) -> str | None:
    if not isinstance(hotspot, Mapping):
        return None
    project = hotspot.get("project")
    if isinstance(project, Mapping):
        project = project.get("key")
    return project if isinstance(project, str) else None


class _ResultFilter:
    """Applies one tool's result filtering for one user."""

    def __init__(
        self,
        tool: str,
        shape: ResultShape,
        user: UserContext,
        service: PermissionService,
        session_id: str | None,
    ):
        self.tool = tool
        self.shape = shape
        self.user = user
        self.service = service
        self.session_id = session_id

    async def apply(self, result: Any) -> Any:
        if self.shape is ResultShape.PROJECT_LIST:
            return await self._projects(result)
        if self.shape is ResultShape.ISSUES:
            return await self._issues(result)
        if self.shape is ResultShape.COMPONENTS:
            return await self._components(result)
        if self.shape is ResultShape.HOTSPOTS:
            return await self._hotspots(result)
        return result

    async def _project_allowed(self, project_key: str) -> bool:
        return (await self.service.check_project_access(self.user, project_key)).allowed

    async def _filtered(self, target: str, before: int, after: int) -> None:
        if after >= before:
            return
        logger.info("Filtered %s for user %s: %d of %d kept", target, self.user.user_id, after, before)
        await self.service.record_event(
            AuditEvent.for_user(
                AuditEventType.DATA_FILTERED,
                self.user,
                session_id=self.session_id,
                target_type=target,
                target_id=self.tool,
                action="read",
                result="partial",
                details={"original_count": before, "filtered_count": after},
            )
        )

    async def _projects(self, result: Any) -> Any:
        if not isinstance(result, list):
            return result
        filtered = self.service.filter_projects(self.user, result)
        await self._filtered("projects", len(result), len(filtered))
        return filtered

    async def _issues(self, result: Any) -> Any:
        if not isinstance(result, Mapping) or not isinstance(result.get("issues"), list):
            return result
        issues = result["issues"]
        in_projects = []
        for issue in issues:
            if not isinstance(issue, Mapping):
                continue
            project = issue.get("project")
            if isinstance(project, str) and not await self._project_allowed(project):
                continue
            in_projects.append(issue)
        filtered = self.service.filter_issues(self.user, in_projects)
        await self._filtered("issues", len(issues), len(filtered))
        return {**result, "issues": filtered, "total": len(filtered)}

    async def _components(self, result: Any) -> Any:
        if not isinstance(result, Mapping) or not isinstance(result.get("components"), list):
            return result
        components = result["components"]
        filtered = []
        for component in components:
            key = component.get("key") if isinstance(component, Mapping) else None
            if isinstance(key, str) and await self._project_allowed(extract_project_key(key)):
                filtered.append(component)
        await self._filtered("components", len(components), len(filtered))
        return {**result, "components": filtered}

    async def _hotspots(self, result: Any) -> Any:
        if not isinstance(result, Mapping) or not isinstance(result.get("hotspots"), list):
            return result
        hotspots = result["hotspots"]
        filtered = []
        for hotspot in hotspots:
            project = _project_of_hotspot(hotspot)
            if project is not None and await self._project_allowed(project):
                filtered.append(hotspot)
        await self._filtered("hotspots", len(hotspots), len(filtered))
        return {**result, "hotspots": filtered}


def create_permission_aware_handler(
    tool: str,
    handler: Handler,
    service_provider: ServiceProvider | None = None,
) -> WrappedHandler:
    """Wrap ``handler(params[, context])`` with permission checks and filtering.

    The returned coroutine function never raises: denials and handler errors
    come back as error responses (see ``sonarqube_mcp.handlers.responses``).
    When no permission service is configured, or the caller has no identity,
    the handler runs unchecked.
    """
    shape = result_shape_for(tool)
    pass_context = _accepts_context(handler)
    provider = service_provider or _default_service_provider

    async def call_handler(params: dict[str, Any], context: HandlerContext | None) -> Any:
        if pass_context:
            return await handler(params, context)
        return await handler(params)

    async def invoke(params: dict[str, Any], context: HandlerContext | None = None) -> dict[str, Any]:
        service: PermissionService | None = None
        user: UserContext | None = None
        session_id = context.session_id if context is not None else None

        async def record(event_type: AuditEventType, result: str, **fields: Any) -> None:
            if service is not None and user is not None:
                await service.record_event(
                    AuditEvent.for_user(
                        event_type,
                        user,
                        session_id=session_id,
                        target_type="tool",
                        target_id=tool,
                        action="execute",
                        result=result,
                        **fields,
                    )
                )

        try:
            service = provider()
            user = _resolve_user(context) if service is not None else None

            if service is None or user is None:
                with Stopwatch(tool):
                    result = await call_handler(params, context)
                return success_response(result)

            await record(AuditEventType.TOOL_INVOKED, "success")

            access = await service.check_tool_access(user, tool)
            if not access.allowed:
                return permission_denied_response(tool, user.user_id, access.reason)

            project_access = await check_project_access_for_params(service, user, params)
            if not project_access.allowed:
                return project_access_denied_response(project_access.resource or "", project_access.reason)

            with Stopwatch(tool) as watch:
                result = await call_handler(params, context)
            filtered = await _ResultFilter(tool, shape, user, service, session_id).apply(result)

            await record(
                AuditEventType.TOOL_COMPLETED, "success", details={"duration_ms": watch.elapsed_ms}
            )
            return success_response(filtered)

        except ProjectAccessDeniedError as e:
            await record(AuditEventType.TOOL_FAILED, "failure", reason=str(e))
            return project_access_denied_response(e.project_key, e.reason)
        except SonarQubeAPIError as e:
            logger.error("Tool %s failed upstream: %s", tool, e)
            await record(AuditEventType.TOOL_FAILED, "failure", reason=str(e))
            return error_response(str(e), UPSTREAM_ERROR)
        except Exception as e:
            logger.exception("Tool %s failed", tool)
            await record(AuditEventType.TOOL_FAILED, "failure", reason=str(e))
            return error_response(str(e) or type(e).__name__, INTERNAL_ERROR)

    invoke.__name__ = f"{tool}_handler"
    invoke.__qualname__ = invoke.__name__
    return invoke


def permission_aware(
    tool: str, service_provider: ServiceProvider | None = None
) -> Callable[[Handler], WrappedHandler]:
    """Decorator form of ``create_permission_aware_handler``."""

    def decorator(handler: Handler) -> WrappedHandler:
        return create_permission_aware_handler(tool, handler, service_provider)

    return decorator
