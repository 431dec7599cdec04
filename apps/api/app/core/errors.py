"""Error hierarchy for the family locator API.

Membership lookups that find nothing (or too much) are reported as typed results,
not raised. Only the conditions below travel as exceptions:

    - IdentityNotFoundError: an email that does not map to a user
    - InvariantViolationError: persisted state the service guarantees can never exist
    - DeliveryError: a single push send failed (recovered per recipient by callers)
    - StoreError: the database failed; not locally recoverable
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    family_id: str | None = None
    debug_info: dict[str, Any] | None = None


class FamilyLocatorError(Exception):
    """Base exception for every error the API renders itself."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            }
        }


class IdentityNotFoundError(FamilyLocatorError):
    """No user is registered under the given email."""

    def __init__(self, email: str, context: ErrorContext | None = None):
        super().__init__(
            f"No user registered with email {email}",
            "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.email = email


class InvariantViolationError(FamilyLocatorError):
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVARIANT_VIOLATION", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )


class DeliveryError(FamilyLocatorError):
    """One push send failed; `reason` is the provider or transport explanation."""

    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Push delivery failed: {reason}",
            "DELIVERY_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 502,
        )
        self.reason = reason


class StoreError(FamilyLocatorError):
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "STORE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
