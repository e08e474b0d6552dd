"""Builders and fakes shared by the unit tests."""

from __future__ import annotations

from typing import Any

from sonarqube_mcp.auth.context import UserContext
from sonarqube_mcp.auth.rules import PermissionConfig


def make_user(user_id: str = "alice", *groups: str) -> UserContext:
    return UserContext(user_id=user_id, groups=list(groups))


def make_config(*rules: dict[str, Any], **options: Any) -> PermissionConfig:
    """Build a config from camelCase rule dicts, as they appear in JSON."""
    return PermissionConfig.model_validate({"rules": list(rules), **options})


class RecordingSink:
    def __init__(self):
        self.events = []

    async def log_event(self, event):
        self.events.append(event)


class FailingSink:
    async def log_event(self, event):
        raise RuntimeError("sink unavailable")


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
