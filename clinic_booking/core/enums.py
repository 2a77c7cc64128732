"""Centralized enum definitions for the clinic booking engine."""

from enum import Enum


class WizardStep(str, Enum):
    """Steps of the new-booking wizard, in display order."""
    CLINIC_SELECT = "clinic_select"
    SERVICE_SELECT = "service_select"
    DOCTOR_SELECT = "doctor_select"
    ADDRESS_SELECT = "address_select"
    DATE_TIME_SELECT = "date_time_select"
    REVIEW = "review"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class BookingStatus(str, Enum):
    """Status values for created bookings."""
    PENDING_VERIFICATION = "pending_verification"
    CONFIRMED = "confirmed"

    @classmethod
    def from_api(cls, raw: object) -> "BookingStatus":
        """Backend marks confirmed bookings with status 1; anything else is pending."""
        if raw in (1, "1", cls.CONFIRMED.value):
            return cls.CONFIRMED
        return cls.PENDING_VERIFICATION


class ResolutionMode(str, Enum):
    """Availability resolution modes."""
    DAYS = "days"
    SLOTS = "slots"
