"""Permission subsystem exceptions."""


class PermissionConfigError(ValueError):
    """Raised when the permission configuration cannot be loaded or is invalid."""


class ProjectAccessDeniedError(Exception):
    """Raised by handlers that validate project access themselves."""

    def __init__(self, project_key: str, reason: str | None = None):
        self.project_key = project_key
        self.reason = reason
        message = f"Access denied to project '{project_key}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
