"""Tests for custom exceptions."""

from clinic_booking.core.exceptions import (
    ApiError,
    ApiValidationError,
    AuthenticationError,
    BookingError,
    CatalogError,
    ClinicBookingError,
    IncompatibleSelectionError,
    NetworkError,
    OTPVerificationError,
    RateLimitError,
    ValidationError,
    WizardTransitionError,
)


def test_base_error():
    """Test ClinicBookingError base exception."""
    error = ClinicBookingError("Test error")
    assert error.message == "Test error"
    assert error.recoverable is True
    assert str(error) == "Test error"


def test_base_error_to_dict():
    error = ClinicBookingError("Fatal", recoverable=False, details={"k": "v"})
    data = error.to_dict()
    assert data["error"] == "ClinicBookingError"
    assert data["message"] == "Fatal"
    assert data["recoverable"] is False
    assert data["details"] == {"k": "v"}
    assert "timestamp" in data


def test_validation_error_field():
    error = ValidationError("Name is required", field="name")
    assert error.field == "name"
    assert "name" in error.message
    assert error.recoverable is False


def test_incompatible_selection_messages():
    by_doctor = IncompatibleSelectionError(doctor_id=3)
    by_service = IncompatibleSelectionError(doctor_id=3, service_id=11)
    assert isinstance(by_doctor, ValidationError)
    assert by_doctor.field == "doctor_id"
    assert by_service.field == "service_ids"
    assert "11" in by_service.message


def test_wizard_transition_error():
    error = WizardTransitionError("review", "submitting", "no clinic selected")
    assert error.details == {"current": "review", "target": "submitting"}
    assert "no clinic selected" in error.message


def test_api_error_hierarchy():
    assert ApiValidationError().status == 422
    assert AuthenticationError(status=403).status == 403
    assert issubclass(ApiValidationError, ApiError)
    assert issubclass(NetworkError, ClinicBookingError)


def test_rate_limit_error_retry_after():
    error = RateLimitError(retry_after=30)
    assert error.retry_after == 30
    assert "30 seconds" in error.message
    assert error.status == 429


def test_domain_error_defaults():
    assert CatalogError().recoverable is True
    assert BookingError().recoverable is False
    assert OTPVerificationError(booking_id=7).details == {"booking_id": 7}
