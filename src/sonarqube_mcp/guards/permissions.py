"""Tool sets defining read vs write operations."""

from __future__ import annotations

from enum import Enum

READ_TOOLS = frozenset({
    "projects",
    "metrics",
    "issues",
    "system_health",
    "system_status",
    "system_ping",
    "measures_component",
    "measures_components",
    "measures_history",
    "quality_gates",
    "quality_gate",
    "quality_gate_status",
    "source_code",
    "scm_blame",
    "hotspots",
    "hotspot",
    "components",
})

WRITE_TOOLS = frozenset({
    "markIssueFalsePositive",
    "markIssueWontFix",
    "markIssuesFalsePositive",
    "markIssuesWontFix",
    "addCommentToIssue",
    "assignIssue",
    "confirmIssue",
    "unconfirmIssue",
    "resolveIssue",
    "reopenIssue",
    "update_hotspot_status",
})

ALL_TOOLS = READ_TOOLS | WRITE_TOOLS


class ToolOperation(str, Enum):
    READ = "read"
    WRITE = "write"


def operation_for(tool: str) -> ToolOperation:
    """Classify a tool. Tools missing from both sets count as reads."""
    if tool in WRITE_TOOLS:
        return ToolOperation.WRITE
    return ToolOperation.READ
