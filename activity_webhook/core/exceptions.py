"""
Custom Exception Hierarchy

Provides structured exceptions for consistent error handling across the application.
"""
from typing import Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for API responses"""

    # General errors (1xxx)
    INTERNAL_ERROR = "ERR_1000"
    NOT_FOUND = "ERR_1002"
    RATE_LIMITED = "ERR_1006"

    # Activity errors (2xxx)
    ACTIVITY_NOT_FOUND = "ERR_2001"
    ACTIVITY_ALREADY_PROCESSED = "ERR_2002"

    # External service errors (5xxx)
    STRAVA_ERROR = "ERR_5001"
    EXTERNAL_SERVICE_UNAVAILABLE = "ERR_5003"


class AppException(Exception):
    """Base exception for all application errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response"""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details
            }
        }


class NotFoundException(AppException):
    """Raised when a requested resource is not found"""

    def __init__(
        self,
        resource: str,
        identifier: Any,
        error_code: ErrorCode = ErrorCode.NOT_FOUND
    ):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            error_code=error_code,
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)}
        )


class ActivityException(AppException):
    """Base exception for activity-related errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        activity_id: int | None = None,
        status_code: int = 400,
        details: dict[str, Any] | None = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
            details=details
        )
        if activity_id is not None:
            self.details["activity_id"] = activity_id


class DuplicateActivityError(ActivityException):
    """Raised when an activity_id is already present in the ledger"""

    def __init__(self, activity_id: int):
        super().__init__(
            message=f"Activity {activity_id} has already been processed",
            error_code=ErrorCode.ACTIVITY_ALREADY_PROCESSED,
            activity_id=activity_id,
            status_code=409
        )


class ActivityNotFoundError(ActivityException):
    """Raised when the upstream API does not know the activity"""

    def __init__(self, activity_id: int):
        super().__init__(
            message=f"Activity not found: {activity_id}",
            error_code=ErrorCode.ACTIVITY_NOT_FOUND,
            activity_id=activity_id,
            status_code=404
        )


class ExternalServiceException(AppException):
    """Base exception for external service errors"""

    def __init__(
        self,
        service_name: str,
        message: str,
        error_code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE,
        details: dict[str, Any] | None = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=503,
            details=details
        )
        self.details["service"] = service_name


class StravaError(ExternalServiceException):
    """Raised when the Strava API fails"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            service_name="strava",
            message=f"Strava API error: {message}",
            error_code=ErrorCode.STRAVA_ERROR,
            details=details
        )

    @classmethod
    def from_response(
        cls,
        operation: str,
        response: Any,
        *,
        message: str | None = None,
        max_response_chars: int = 500
    ) -> "StravaError":
        """
        Build a StravaError from an HTTP response.

        Args:
            operation: Operation name (e.g. get_activity, update_activity)
            response: Response object (e.g. httpx.Response)
            message: Custom message; built from the status code when omitted
            max_response_chars: Cap on the stored response_text
        """
        status_code = getattr(response, "status_code", None)
        response_text = getattr(response, "text", "") or ""
        return cls(
            message=message or f"{operation} returned status {status_code}",
            details={
                "operation": operation,
                "status_code": status_code,
                "response_text": response_text[:max_response_chars],
            },
        )


class CircuitBreakerOpenError(ExternalServiceException):
    """Raised when circuit breaker is open"""

    def __init__(self, service_name: str, retry_after_seconds: float):
        super().__init__(
            service_name=service_name,
            message=f"{service_name} is temporarily unavailable (circuit breaker open)",
            error_code=ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE,
            details={"retry_after_seconds": retry_after_seconds}
        )
