"""SonarQube API exception hierarchy."""


class SonarQubeAPIError(Exception):
    """Base exception for SonarQube API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class SonarQubeAuthenticationError(SonarQubeAPIError):
    """Raised when authentication fails (401)."""

    def __init__(self, message: str = "Authentication failed. Check SONARQUBE_TOKEN."):
        super().__init__(message, status_code=401)


class SonarQubeNotFoundError(SonarQubeAPIError):
    """Raised when a resource is not found (404)."""

    def __init__(self, message: str = "Resource not found."):
        super().__init__(message, status_code=404)


class SonarQubePermissionError(SonarQubeAPIError):
    """Raised when the token lacks permissions (403) or read-only mode blocks writes."""

    def __init__(self, message: str = "Permission denied."):
        super().__init__(message, status_code=403)


class SonarQubeValidationError(SonarQubeAPIError):
    """Raised when the request parameters are invalid (400)."""

    def __init__(self, message: str = "Validation error."):
        super().__init__(message, status_code=400)
