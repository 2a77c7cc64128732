"""Custom exception classes for the clinic booking engine."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ClinicBookingError(Exception):
    """Base exception for the clinic booking engine."""

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize clinic booking error.

        Args:
            message: Error message
            recoverable: Whether the error is recoverable with retry
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Validation Errors
class ValidationError(ClinicBookingError):
    """Input validation error, raised before any network call."""

    def __init__(self, message: str = "Validation error", field: Optional[str] = None):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
        """
        self.field = field
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, recoverable=False, details={"field": field} if field else {})


class IncompatibleSelectionError(ValidationError):
    """A doctor/service pair that the compatibility filter does not allow."""

    def __init__(self, doctor_id: Optional[int], service_id: Optional[int] = None):
        self.doctor_id = doctor_id
        self.service_id = service_id
        if service_id is None:
            message = f"Doctor {doctor_id} cannot perform any of the selected services"
        else:
            message = f"Service {service_id} is not offered by doctor {doctor_id}"
        super().__init__(message, field="doctor_id" if service_id is None else "service_ids")


class WizardTransitionError(ClinicBookingError):
    """Transition not permitted from the current wizard step."""

    def __init__(self, current: str, target: str, reason: str = ""):
        self.current = current
        self.target = target
        message = f"Cannot move from {current} to {target}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message, recoverable=False, details={"current": current, "target": target}
        )


# Transport / API Errors
class NetworkError(ClinicBookingError):
    """Network connection error occurred."""

    def __init__(self, message: str = "Network error occurred", recoverable: bool = True):
        super().__init__(message, recoverable)


class ApiError(ClinicBookingError):
    """Backend answered with a non-success status or envelope."""

    def __init__(
        self,
        message: str = "Clinic API error occurred",
        status: Optional[int] = None,
        recoverable: bool = True,
    ):
        self.status = status
        super().__init__(message, recoverable, details={"status": status} if status else {})


class ApiValidationError(ApiError):
    """Backend rejected the request as unprocessable (422)."""

    def __init__(self, message: str = "Request rejected by the clinic API"):
        super().__init__(message, status=422, recoverable=False)


class AuthenticationError(ApiError):
    """Backend rejected the bearer token."""

    def __init__(self, message: str = "Authentication failed", status: int = 401):
        super().__init__(message, status=status, recoverable=False)


class RateLimitError(ApiError):
    """Clinic API rate limit exceeded."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[int] = None):
        """
        Initialize rate limit error.

        Args:
            message: Error message
            retry_after: Recommended wait time in seconds before retry
        """
        self.retry_after = retry_after
        if retry_after:
            message += f". Retry after {retry_after} seconds."
        super().__init__(message, status=429, recoverable=True)


# Domain Errors
class CatalogError(ClinicBookingError):
    """Clinic catalog could not be loaded or parsed."""

    def __init__(self, message: str = "Catalog unavailable", recoverable: bool = True):
        super().__init__(message, recoverable)


class BookingError(ClinicBookingError):
    """Booking creation failed."""

    def __init__(
        self,
        message: str = "Booking failed",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class OTPVerificationError(ClinicBookingError):
    """Completion code was rejected or could not be exchanged."""

    def __init__(self, message: str = "OTP verification failed", booking_id: Any = None):
        self.booking_id = booking_id
        super().__init__(
            message, recoverable=True, details={"booking_id": booking_id} if booking_id else {}
        )

