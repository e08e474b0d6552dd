"""Caller identity: user context derived from token claims, scoped per request."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger("sonarqube_mcp")

# Claim names that may carry group membership, in lookup order
GROUP_CLAIMS = ("groups", "group", "roles", "role", "authorities")

_GROUP_SEPARATORS = re.compile(r"[,\s]+")


class UserContext(BaseModel):
    """Identity of the caller, built from validated token claims."""

    user_id: str
    groups: list[str] = Field(default_factory=list)
    scopes: list[str] = Field(default_factory=list)
    issuer: str = ""
    claims: dict[str, Any] = Field(default_factory=dict)


class RequestContext(BaseModel):
    user_context: UserContext | None = None
    session_id: str | None = None
    request_id: str | None = None


def _extract_groups(claims: Mapping[str, Any]) -> list[str]:
    groups: list[str] = []
    for claim in GROUP_CLAIMS:
        value = claims.get(claim)
        if not value:
            continue
        if isinstance(value, (list, tuple)):
            groups.extend(g for g in value if isinstance(g, str))
        elif isinstance(value, str):
            groups.extend(g for g in _GROUP_SEPARATORS.split(value) if g)
    # dict.fromkeys keeps first-seen order
    return list(dict.fromkeys(groups))


def _extract_scopes(claims: Mapping[str, Any]) -> list[str]:
    scope = claims.get("scope")
    if not isinstance(scope, str):
        return []
    return [s for s in scope.split(" ") if s]


def extract_user_context(claims: Mapping[str, Any]) -> UserContext:
    return UserContext(
        user_id=str(claims.get("sub", "")),
        groups=_extract_groups(claims),
        scopes=_extract_scopes(claims),
        issuer=str(claims.get("iss", "")),
        claims=dict(claims),
    )


_request_context: ContextVar[RequestContext | None] = ContextVar(
    "sonarqube_mcp_request_context", default=None
)


def current_request_context() -> RequestContext | None:
    return _request_context.get()


@contextmanager
def request_scope(context: RequestContext) -> Iterator[RequestContext]:
    """Make ``context`` the current request context for the enclosed block."""
    token = _request_context.set(context)
    try:
        yield context
    finally:
        _request_context.reset(token)


def user_context_from_access_token() -> UserContext | None:
    """User context from the authenticated HTTP request, if there is one."""
    from fastmcp.server.dependencies import get_access_token

    try:
        token = get_access_token()
    except RuntimeError:
        # Not inside an HTTP request (stdio transport)
        return None
    if token is None:
        return None

    claims = getattr(token, "claims", None) or {}
    if not claims:
        claims = {"sub": token.client_id, "scope": " ".join(token.scopes)}
    return extract_user_context(claims)
