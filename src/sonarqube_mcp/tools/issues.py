"""Issue tools: search and triage.

Search results are filtered per caller (severity ceiling, allowed statuses,
project access) by the permission wrapper. Every mutating tool is a write
operation: it is refused for read-only rules and when the server runs with
SONARQUBE_READ_ONLY_MODE.
"""

from typing import Any, Literal

from sonarqube_mcp.guards.rate_limit import rate_limit
from sonarqube_mcp.guards.read_only import check_read_only
from sonarqube_mcp.handlers.wrapper import permission_aware
from sonarqube_mcp.lifespan import get_sonarqube_client
from sonarqube_mcp.server import mcp
from sonarqube_mcp.sonarqube.client import (
    TRANSITION_CONFIRM,
    TRANSITION_FALSE_POSITIVE,
    TRANSITION_REOPEN,
    TRANSITION_RESOLVE,
    TRANSITION_UNCONFIRM,
    TRANSITION_WONT_FIX,
)

Severity = Literal["INFO", "MINOR", "MAJOR", "CRITICAL", "BLOCKER"]
Status = Literal[
    "OPEN", "CONFIRMED", "REOPENED", "RESOLVED", "CLOSED", "TO_REVIEW", "IN_REVIEW", "REVIEWED"
]
Resolution = Literal["FALSE-POSITIVE", "WONTFIX", "FIXED", "REMOVED"]
IssueType = Literal["CODE_SMELL", "BUG", "VULNERABILITY", "SECURITY_HOTSPOT"]

# Tool argument name -> Web API parameter name
_SEARCH_PARAMS = {
    "project_key": "componentKeys",
    "severities": "severities",
    "statuses": "statuses",
    "resolutions": "resolutions",
    "resolved": "resolved",
    "types": "types",
    "rules": "rules",
    "tags": "tags",
    "assignees": "assignees",
    "authors": "author",
    "languages": "languages",
    "created_after": "createdAfter",
    "created_before": "createdBefore",
    "created_in_last": "createdInLast",
    "in_new_code_period": "inNewCodePeriod",
    "facets": "facets",
    "page": "p",
    "page_size": "ps",
}


def search_params(params: dict[str, Any]) -> dict[str, Any]:
    """Translate tool arguments into ``/api/issues/search`` query parameters."""
    query = {api: params.get(name) for name, api in _SEARCH_PARAMS.items()}
    # Single severity is a shorthand for a one-element severities filter
    if params.get("severity") and not params.get("severities"):
        query["severities"] = [params["severity"]]
    return query


@permission_aware("issues")
async def search_issues_handler(params: dict[str, Any]) -> dict[str, Any]:
    client = get_sonarqube_client()
    return await client.search_issues(**search_params(params))


async def _transition(params: dict[str, Any], transition: str) -> dict[str, Any]:
    check_read_only()
    client = get_sonarqube_client()
    issue_key = params["issue_key"]
    if params.get("comment"):
        await client.add_comment(issue_key, params["comment"])
    return await client.do_transition(issue_key, transition)


async def _bulk_transition(params: dict[str, Any], transition: str) -> list[dict[str, Any]]:
    check_read_only()
    client = get_sonarqube_client()
    results = []
    for issue_key in params["issue_keys"]:
        if params.get("comment"):
            await client.add_comment(issue_key, params["comment"])
        results.append(await client.do_transition(issue_key, transition))
    return results


@permission_aware("markIssueFalsePositive")
async def mark_false_positive_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await _transition(params, TRANSITION_FALSE_POSITIVE)


@permission_aware("markIssueWontFix")
async def mark_wont_fix_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await _transition(params, TRANSITION_WONT_FIX)


@permission_aware("markIssuesFalsePositive")
async def mark_many_false_positive_handler(params: dict[str, Any]) -> list[dict[str, Any]]:
    return await _bulk_transition(params, TRANSITION_FALSE_POSITIVE)


@permission_aware("markIssuesWontFix")
async def mark_many_wont_fix_handler(params: dict[str, Any]) -> list[dict[str, Any]]:
    return await _bulk_transition(params, TRANSITION_WONT_FIX)


@permission_aware("confirmIssue")
async def confirm_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await _transition(params, TRANSITION_CONFIRM)


@permission_aware("unconfirmIssue")
async def unconfirm_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await _transition(params, TRANSITION_UNCONFIRM)


@permission_aware("resolveIssue")
async def resolve_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await _transition(params, TRANSITION_RESOLVE)


@permission_aware("reopenIssue")
async def reopen_handler(params: dict[str, Any]) -> dict[str, Any]:
    return await _transition(params, TRANSITION_REOPEN)


@permission_aware("addCommentToIssue")
async def add_comment_handler(params: dict[str, Any]) -> dict[str, Any]:
    check_read_only()
    return await get_sonarqube_client().add_comment(params["issue_key"], params["text"])


@permission_aware("assignIssue")
async def assign_handler(params: dict[str, Any]) -> dict[str, Any]:
    check_read_only()
    return await get_sonarqube_client().assign_issue(params["issue_key"], params.get("assignee"))


@mcp.tool(name="issues")
@rate_limit
async def issues(
    project_key: str | None = None,
    severity: Severity | None = None,
    severities: list[Severity] | None = None,
    statuses: list[Status] | None = None,
    resolutions: list[Resolution] | None = None,
    resolved: bool | None = None,
    types: list[IssueType] | None = None,
    rules: list[str] | None = None,
    tags: list[str] | None = None,
    assignees: list[str] | None = None,
    authors: list[str] | None = None,
    languages: list[str] | None = None,
    created_after: str | None = None,
    created_before: str | None = None,
    created_in_last: str | None = None,
    in_new_code_period: bool | None = None,
    facets: list[str] | None = None,
    page: int | None = None,
    page_size: int | None = None,
) -> dict[str, Any]:
    """Search SonarQube issues.

    Args:
        project_key: Project key to restrict the search to. Optional.
        severity: Single severity to filter by, e.g. "MAJOR". Optional.
        severities: Severities to include. Optional.
        statuses: Issue statuses to include, e.g. ["OPEN", "CONFIRMED"]. Optional.
        resolutions: Resolutions to include. Optional.
        resolved: True for resolved issues only, False for unresolved only. Optional.
        types: Issue types, e.g. ["BUG", "VULNERABILITY"]. Optional.
        rules: Rule keys, e.g. ["python:S1481"]. Optional.
        tags: Issue tags. Optional.
        assignees: Assignee logins. Optional.
        authors: SCM author logins. Optional.
        languages: Language keys, e.g. ["py", "java"]. Optional.
        created_after: ISO date lower bound (inclusive). Optional.
        created_before: ISO date upper bound (exclusive). Optional.
        created_in_last: Relative window such as "1m2w" (one month two weeks). Optional.
        in_new_code_period: Only issues in the new code period. Optional.
        facets: Facets to compute, e.g. ["severities", "types"]. Optional.
        page: 1-based page number. Optional.
        page_size: Page size (max 500). Optional.

    Returns:
        {"success": true, "data": {"issues": [...], "total": n, ...}}, restricted
        to the issues the caller may see.
    """
    return await search_issues_handler(
        {
            "project_key": project_key,
            "severity": severity,
            "severities": severities,
            "statuses": statuses,
            "resolutions": resolutions,
            "resolved": resolved,
            "types": types,
            "rules": rules,
            "tags": tags,
            "assignees": assignees,
            "authors": authors,
            "languages": languages,
            "created_after": created_after,
            "created_before": created_before,
            "created_in_last": created_in_last,
            "in_new_code_period": in_new_code_period,
            "facets": facets,
            "page": page,
            "page_size": page_size,
        }
    )


@mcp.tool(name="markIssueFalsePositive")
@rate_limit
async def mark_issue_false_positive(issue_key: str, comment: str | None = None) -> dict[str, Any]:
    """Mark an issue as a false positive.

    Args:
        issue_key: Issue key, e.g. "AYx...".
        comment: Comment explaining why. Optional.
    """
    return await mark_false_positive_handler({"issue_key": issue_key, "comment": comment})


@mcp.tool(name="markIssueWontFix")
@rate_limit
async def mark_issue_wont_fix(issue_key: str, comment: str | None = None) -> dict[str, Any]:
    """Mark an issue as won't fix.

    Args:
        issue_key: Issue key.
        comment: Comment explaining why. Optional.
    """
    return await mark_wont_fix_handler({"issue_key": issue_key, "comment": comment})


@mcp.tool(name="markIssuesFalsePositive")
@rate_limit
async def mark_issues_false_positive(
    issue_keys: list[str], comment: str | None = None
) -> dict[str, Any]:
    """Mark several issues as false positives.

    Args:
        issue_keys: Issue keys.
        comment: Comment added to every issue. Optional.

    Returns:
        One transition result per issue, in the order given.
    """
    return await mark_many_false_positive_handler({"issue_keys": issue_keys, "comment": comment})


@mcp.tool(name="markIssuesWontFix")
@rate_limit
async def mark_issues_wont_fix(issue_keys: list[str], comment: str | None = None) -> dict[str, Any]:
    """Mark several issues as won't fix.

    Args:
        issue_keys: Issue keys.
        comment: Comment added to every issue. Optional.
    """
    return await mark_many_wont_fix_handler({"issue_keys": issue_keys, "comment": comment})


@mcp.tool(name="addCommentToIssue")
@rate_limit
async def add_comment_to_issue(issue_key: str, text: str) -> dict[str, Any]:
    """Add a comment to an issue. Markdown is supported.

    Args:
        issue_key: Issue key.
        text: Comment text.
    """
    return await add_comment_handler({"issue_key": issue_key, "text": text})


@mcp.tool(name="assignIssue")
@rate_limit
async def assign_issue(issue_key: str, assignee: str | None = None) -> dict[str, Any]:
    """Assign an issue to a user, or unassign it when no assignee is given.

    Args:
        issue_key: Issue key.
        assignee: User login. Optional; omit to unassign.
    """
    return await assign_handler({"issue_key": issue_key, "assignee": assignee})


@mcp.tool(name="confirmIssue")
@rate_limit
async def confirm_issue(issue_key: str, comment: str | None = None) -> dict[str, Any]:
    """Confirm an issue."""
    return await confirm_handler({"issue_key": issue_key, "comment": comment})


@mcp.tool(name="unconfirmIssue")
@rate_limit
async def unconfirm_issue(issue_key: str, comment: str | None = None) -> dict[str, Any]:
    """Move a confirmed issue back to open."""
    return await unconfirm_handler({"issue_key": issue_key, "comment": comment})


@mcp.tool(name="resolveIssue")
@rate_limit
async def resolve_issue(issue_key: str, comment: str | None = None) -> dict[str, Any]:
    """Resolve an issue as fixed."""
    return await resolve_handler({"issue_key": issue_key, "comment": comment})


@mcp.tool(name="reopenIssue")
@rate_limit
async def reopen_issue(issue_key: str, comment: str | None = None) -> dict[str, Any]:
    """Reopen a resolved issue."""
    return await reopen_handler({"issue_key": issue_key, "comment": comment})
