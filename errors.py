"""
Exceptions for the inspection checklist.

Usage:
    from errors import ReportNotFound, ValidationFailure

    if doc is None:
        raise ReportNotFound(report_id)
"""

from typing import Any, Dict, Iterable, Optional


class ChecklistError(Exception):
    """Base exception for all checklist errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class ValidationFailure(ChecklistError):
    """Draft is incomplete or inconsistent; nothing was written"""

    status_code = 422

    def __init__(self, offending: Iterable[str], message: str):
        self.offending = set(offending)
        super().__init__(
            message,
            code="VALIDATION_FAILED",
            details={"errors": sorted(self.offending), "count": len(self.offending)}
        )

    @property
    def count(self) -> int:
        return len(self.offending)


class MalformedSubmission(ChecklistError):
    """Submitted payload does not match the report schema"""

    status_code = 400

    def __init__(self, message: str = "Invalid form data"):
        super().__init__(message, code="MALFORMED_SUBMISSION")


class ReportNotFound(ChecklistError):
    status_code = 404

    def __init__(self, report_id: str):
        super().__init__(
            "Inspection report not found",
            code="NOT_FOUND",
            details={"report_id": report_id}
        )
        self.report_id = report_id


class PersistenceFailure(ChecklistError):
    """Backend unreachable or write rejected. Not retried."""

    status_code = 503

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        super().__init__(
            message,
            code="PERSISTENCE_FAILED",
            details={"operation": operation} if operation else None
        )


class LoginRequired(ChecklistError):
    """No valid session; answered with a redirect to the login page"""

    status_code = 303

    def __init__(self, redirect_to: str = "/dashboard"):
        super().__init__("Login required", code="LOGIN_REQUIRED")
        self.redirect_to = redirect_to
