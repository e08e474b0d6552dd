"""Project-key matching against a rule's allowed project patterns.

Patterns are regular expressions searched (not fully matched) against the
whole project key, so ``"^dev-"`` and ``"dev-"`` differ. An invalid pattern
never matches and never raises.
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from sonarqube_mcp.auth.errors import ProjectAccessDeniedError

if TYPE_CHECKING:
    from sonarqube_mcp.auth.context import UserContext
    from sonarqube_mcp.auth.rules import PermissionRule
    from sonarqube_mcp.auth.service import PermissionCheckResult, PermissionService

logger = logging.getLogger("sonarqube_mcp")

T = TypeVar("T")

# Parameter names that may carry a project or component key, in check order
PROJECT_PARAMS = ("project_key", "projectKey", "component", "components", "component_keys")


@functools.lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile a project pattern once; None (logged) if it is not a valid regex."""
    try:
        return re.compile(pattern)
    except (re.error, TypeError) as e:
        logger.error("Invalid regex pattern %r: %s", pattern, e)
        return None


def matches_any(key: str, patterns: Iterable[str]) -> bool:
    for pattern in patterns:
        compiled = compile_pattern(pattern)
        if compiled is not None and compiled.search(key):
            return True
    return False


def extract_project_key(component_key: str) -> str:
    """Return the project part of a ``project:path`` component key.

    A key without a colon is already a project key. A key starting with a
    colon is returned unchanged rather than reduced to an empty project.
    """
    colon = component_key.find(":")
    if colon > 0:
        return component_key[:colon]
    return component_key


def item_key(item: Any) -> str | None:
    """The ``key`` of a mapping or object, if it is a string."""
    key = item.get("key") if isinstance(item, Mapping) else getattr(item, "key", None)
    return key if isinstance(key, str) else None


def filter_by_access(items: Sequence[T], rule: PermissionRule) -> list[T]:
    if not rule.allowed_projects:
        return []
    allowed = create_filter_predicate(rule.allowed_projects)
    return [item for item in items if (key := item_key(item)) is not None and allowed(key)]


def create_filter_predicate(patterns: Sequence[str]) -> Callable[[str], bool]:
    frozen = tuple(patterns)

    def predicate(project_key: str) -> bool:
        if not frozen:
            return False
        return matches_any(project_key, frozen)

    return predicate


def project_keys_from_params(params: Mapping[str, Any]) -> list[str]:
    """Project keys referenced by tool parameters, in check order."""
    keys: list[str] = []
    for name in PROJECT_PARAMS:
        value = params.get(name)
        if not value:
            continue
        if isinstance(value, str):
            keys.append(extract_project_key(value))
        elif isinstance(value, (list, tuple)):
            keys.extend(extract_project_key(v) for v in value if isinstance(v, str))
    return keys


async def check_multiple_project_access(
    service: PermissionService, user: UserContext, project_keys: Iterable[str]
) -> PermissionCheckResult:
    """Check keys in order and stop at the first denial."""
    from sonarqube_mcp.auth.service import PermissionCheckResult

    for project_key in project_keys:
        result = await service.check_project_access(user, project_key)
        if not result.allowed:
            return result
    return PermissionCheckResult(allowed=True)


async def check_project_access_for_params(
    service: PermissionService, user: UserContext, params: Mapping[str, Any]
) -> PermissionCheckResult:
    return await check_multiple_project_access(service, user, project_keys_from_params(params))


async def validate_project_access_or_raise(
    service: PermissionService, user: UserContext, project_keys: str | Iterable[str]
) -> None:
    keys = [project_keys] if isinstance(project_keys, str) else project_keys
    for project_key in keys:
        result = await service.check_project_access(user, project_key)
        if not result.allowed:
            raise ProjectAccessDeniedError(project_key, result.reason)
