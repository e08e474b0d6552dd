"""Loading and validation of the permission configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from sonarqube_mcp.auth.audit import AuditSink
from sonarqube_mcp.auth.context import UserContext
from sonarqube_mcp.auth.errors import PermissionConfigError
from sonarqube_mcp.auth.project_access import compile_pattern
from sonarqube_mcp.auth.rules import DefaultRule, PermissionConfig, PermissionRule
from sonarqube_mcp.auth.service import PermissionService
from sonarqube_mcp.guards.permissions import ALL_TOOLS
from sonarqube_mcp.settings import SonarQubeSettings

logger = logging.getLogger("sonarqube_mcp")


def _validate_rule(rule: PermissionRule | DefaultRule, context: str) -> None:
    for pattern in rule.allowed_projects or ():
        if compile_pattern(pattern) is None:
            raise PermissionConfigError(f"{context}: Invalid regex pattern '{pattern}'")
    for field, tools in (("allowedTools", rule.allowed_tools), ("deniedTools", rule.denied_tools)):
        unknown = sorted(set(tools or ()) - ALL_TOOLS)
        if unknown:
            raise PermissionConfigError(f"{context}: unknown tool(s) in {field}: {', '.join(unknown)}")


def validate_permission_config(config: PermissionConfig) -> PermissionConfig:
    """Checks pydantic cannot express: patterns compile, tool names exist."""
    for index, rule in enumerate(config.rules):
        _validate_rule(rule, f"Rule {index}")
    if config.default_rule is not None:
        _validate_rule(config.default_rule, "Default rule")
    return config


def parse_permission_config(data: Mapping[str, Any]) -> PermissionConfig:
    if not isinstance(data.get("rules"), list):
        raise PermissionConfigError("Permission configuration must have a rules array")
    try:
        config = PermissionConfig.model_validate(data)
    except ValidationError as e:
        raise PermissionConfigError(f"Invalid permission configuration: {e}") from e
    return validate_permission_config(config)


def load_permission_config(source: str | Path) -> PermissionConfig:
    """Load a configuration from a JSON file path or an inline JSON document."""
    if isinstance(source, Path) or not source.lstrip().startswith(("{", "[")):
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PermissionConfigError(f"Cannot read permission configuration {path}: {e}") from e
    else:
        text = source

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PermissionConfigError(f"Permission configuration is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise PermissionConfigError("Permission configuration must be a JSON object")
    return parse_permission_config(data)


class PermissionManager:
    """Owns the process's ``PermissionService``, or nothing when permissions are off."""

    def __init__(self, service: PermissionService | None = None):
        self._service = service

    @classmethod
    def from_settings(
        cls, settings: SonarQubeSettings, audit_sink: AuditSink | None = None
    ) -> PermissionManager:
        source: str | Path | None = settings.permission_config or settings.permission_config_path
        if source is None:
            logger.debug("No permission configuration specified; permissions disabled")
            return cls()

        config = load_permission_config(source)
        logger.info(
            "Permission manager initialized (rules=%d, caching=%s, audit=%s)",
            len(config.rules),
            config.enable_caching,
            config.enable_audit,
        )
        return cls(PermissionService(config, audit_sink=audit_sink))

    @property
    def service(self) -> PermissionService | None:
        return self._service

    @property
    def enabled(self) -> bool:
        return self._service is not None

    def extract_user_context(self, claims: Mapping[str, Any]) -> UserContext | None:
        if self._service is None:
            return None
        return self._service.extract_user_context(claims)


def create_default_config() -> PermissionConfig:
    """Tiered example: admins, developers, QA, guests; everyone else denied."""
    return PermissionConfig(
        rules=[
            PermissionRule(
                groups=["admin", "sonarqube-admin"],
                allowed_projects=[".*"],
                allowed_tools=sorted(ALL_TOOLS),
                readonly=False,
                priority=100,
            ),
            PermissionRule(
                groups=["developer", "dev"],
                allowed_projects=["^(dev-|feature-|test-).*"],
                allowed_tools=[
                    "projects",
                    "metrics",
                    "issues",
                    "markIssueFalsePositive",
                    "markIssueWontFix",
                    "addCommentToIssue",
                    "assignIssue",
                    "confirmIssue",
                    "unconfirmIssue",
                    "measures_component",
                    "measures_components",
                    "measures_history",
                    "quality_gate_status",
                    "source_code",
                    "scm_blame",
                    "components",
                ],
                denied_tools=["system_health", "system_status"],
                readonly=False,
                max_severity="CRITICAL",
                priority=50,
            ),
            PermissionRule(
                groups=["qa", "quality-assurance"],
                allowed_projects=[".*"],
                allowed_tools=[
                    "projects",
                    "metrics",
                    "issues",
                    "measures_component",
                    "measures_components",
                    "measures_history",
                    "quality_gates",
                    "quality_gate",
                    "quality_gate_status",
                    "source_code",
                    "hotspots",
                    "hotspot",
                    "components",
                ],
                readonly=True,
                priority=40,
            ),
            PermissionRule(
                groups=["guest", "viewer"],
                allowed_projects=["^public-.*"],
                allowed_tools=["projects", "metrics", "issues", "quality_gate_status"],
                readonly=True,
                max_severity="MAJOR",
                hide_sensitive_data=True,
                priority=10,
            ),
        ],
        default_rule=DefaultRule(allowed_projects=[], allowed_tools=[], readonly=True),
        enable_caching=True,
        cache_ttl=300,
        enable_audit=False,
    )


def save_example_config(path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    config = create_default_config()
    path.write_text(
        config.model_dump_json(by_alias=True, exclude_none=True, indent=2), encoding="utf-8"
    )
    logger.info("Example permission configuration saved to %s", path)
    return path
