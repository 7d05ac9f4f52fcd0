# app/core/exceptions.py
from typing import Any, Dict, Optional


class BillingError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "detail": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(BillingError):
    """Missing or invalid input, detected before any network call."""
    status_code = 400


class AuthenticationError(BillingError):
    status_code = 401


class PermissionDeniedError(BillingError):
    status_code = 403


class NotFoundError(BillingError):
    status_code = 404


class ConflictError(BillingError):
    status_code = 409


class PersistenceError(BillingError):
    """A database read or write failed; the operation was aborted."""
    status_code = 500

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["outcome"] = "aborted"
        return body


class NotificationError(Exception):
    """The Discord webhook rejected or could not be reached for a call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
