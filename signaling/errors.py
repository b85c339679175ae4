"""
Error taxonomy for the signaling endpoints.

Every error knows the HTTP status it maps to; ``signaling.http.api_view``
turns them into JSON responses.
"""
from typing import Any, Dict, Iterable


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def as_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class ClientError(ApiError):
    """Caller sent something we cannot act on (missing fields, bad JSON)."""

    status_code = 400


class MethodNotAllowed(ClientError):
    status_code = 405

    def __init__(self, allowed: Iterable[str]):
        super().__init__("Method not allowed")
        self.allowed = list(allowed)


class NotFoundError(ApiError):
    status_code = 404


class DependencyError(ApiError):
    """An external collaborator (Firestore) failed."""

    status_code = 500


class ConfigurationError(ApiError):
    """The server is missing credentials or settings it needs."""

    status_code = 500
