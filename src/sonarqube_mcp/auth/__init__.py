from sonarqube_mcp.auth.audit import AuditEvent, AuditEventType, AuditSink, LoggingAuditSink
from sonarqube_mcp.auth.context import (
    RequestContext,
    UserContext,
    current_request_context,
    extract_user_context,
    request_scope,
)
from sonarqube_mcp.auth.errors import PermissionConfigError, ProjectAccessDeniedError
from sonarqube_mcp.auth.manager import (
    PermissionManager,
    create_default_config,
    load_permission_config,
    save_example_config,
)
from sonarqube_mcp.auth.project_access import (
    check_multiple_project_access,
    check_project_access_for_params,
    create_filter_predicate,
    extract_project_key,
    filter_by_access,
    matches_any,
    validate_project_access_or_raise,
)
from sonarqube_mcp.auth.rules import (
    DefaultRule,
    IssueSeverity,
    IssueStatus,
    PermissionConfig,
    PermissionRule,
)
from sonarqube_mcp.auth.service import (
    PermissionAuditEntry,
    PermissionCheckResult,
    PermissionService,
)

__all__ = [
    "AuditEvent",
    "AuditEventType",
    "AuditSink",
    "LoggingAuditSink",
    "RequestContext",
    "UserContext",
    "current_request_context",
    "extract_user_context",
    "request_scope",
    "PermissionConfigError",
    "ProjectAccessDeniedError",
    "PermissionManager",
    "create_default_config",
    "load_permission_config",
    "save_example_config",
    "check_multiple_project_access",
    "check_project_access_for_params",
    "create_filter_predicate",
    "extract_project_key",
    "filter_by_access",
    "matches_any",
    "validate_project_access_or_raise",
    "DefaultRule",
    "IssueSeverity",
    "IssueStatus",
    "PermissionConfig",
    "PermissionRule",
    "PermissionAuditEntry",
    "PermissionCheckResult",
    "PermissionService",
]
