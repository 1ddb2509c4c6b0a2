"""
Portal error taxonomy.

Every failure raised by the services carries a stable machine-readable
``kind`` and the HTTP status it maps to. ``main.py`` renders them as
``{"error": message, "kind": kind}``.
"""

from typing import Any, Dict, Optional


class PortalError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_dict(self) -> dict:
        body = {"error": self.message, "kind": self.kind}
        body.update(self.extra)
        return body


class AuthenticationError(PortalError):
    kind = "authentication"
    status_code = 401


class PermissionDeniedError(PortalError):
    kind = "permission_denied"
    status_code = 403


class NotFoundError(PortalError):
    kind = "not_found"
    status_code = 404


class EligibilityError(PortalError):
    """A gate of the eligibility evaluator rejected the application."""
    kind = "eligibility"
    status_code = 400

    def __init__(self, message: str, gate: Optional[str] = None, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message, extra)
        self.gate = gate

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.gate:
            body["gate"] = self.gate
        return body


class ValidationError(PortalError):
    kind = "validation"
    status_code = 400


class PayloadTooLargeError(ValidationError):
    status_code = 413


class ConflictError(PortalError):
    kind = "conflict"
    status_code = 409


class DuplicateApplicationError(ConflictError):
    """Raised both by the duplicate gate and by the unique constraint backstop."""

    def __init__(self, message: str = "You have already applied to this job"):
        super().__init__(message)
