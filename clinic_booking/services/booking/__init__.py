"""Booking engine - wizard, availability, submission and completion."""

from clinic_booking.services.booking.availability_resolver import (
    AvailabilityQuery,
    AvailabilityResolver,
    DayAvailabilityMap,
    TimeSlotMap,
)
from clinic_booking.services.booking.compatibility import (
    CompatibilityView,
    eligible_doctor_ids,
    filter_compatible,
    is_compatible,
    services_for_doctor,
)
from clinic_booking.services.booking.contact_redirect import ContactRedirector, ServiceSelection
from clinic_booking.services.booking.draft import BookingDraft
from clinic_booking.services.booking.history import BookingHistory
from clinic_booking.services.booking.otp_verifier import CompletionVerifier
from clinic_booking.services.booking.preselection import BookingPreselection
from clinic_booking.services.booking.submission import (
    SubmissionOrchestrator,
    SubmissionOutcome,
    display_doctor_name,
    validate_submission,
)
from clinic_booking.services.booking.wizard import BookingWizard, CompletionSummary

__all__ = [
    "AvailabilityQuery",
    "AvailabilityResolver",
    "DayAvailabilityMap",
    "TimeSlotMap",
    "CompatibilityView",
    "eligible_doctor_ids",
    "filter_compatible",
    "is_compatible",
    "services_for_doctor",
    "ContactRedirector",
    "ServiceSelection",
    "BookingDraft",
    "BookingHistory",
    "CompletionVerifier",
    "BookingPreselection",
    "SubmissionOrchestrator",
    "SubmissionOutcome",
    "display_doctor_name",
    "validate_submission",
    "BookingWizard",
    "CompletionSummary",
]
