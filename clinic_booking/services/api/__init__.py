"""Clinic API Client - async access to the clinic REST backend."""

from clinic_booking.services.api.availability import (
    ADDITIONAL_SERVICES_PARAM,
    AvailabilityApi,
    build_availability_params,
)
from clinic_booking.services.api.bookings import BookingsApi
from clinic_booking.services.api.catalog import CatalogApi
from clinic_booking.services.api.client import ClinicApiClient
from clinic_booking.services.api.models import (
    Address,
    AddressRef,
    BookingPayload,
    BookingRecord,
    Clinic,
    ClinicRoster,
    ContactDetails,
    CurrentLocation,
    Service,
    SlotOption,
    Staff,
    format_date,
)
from clinic_booking.services.api.normalization import (
    STAFF_AFFINITY_KEYS,
    extract_staff_affinity,
    normalize_staff_affinity,
)

__all__ = [
    "ClinicApiClient",
    "CatalogApi",
    "AvailabilityApi",
    "BookingsApi",
    "ADDITIONAL_SERVICES_PARAM",
    "build_availability_params",
    "Address",
    "AddressRef",
    "BookingPayload",
    "BookingRecord",
    "Clinic",
    "ClinicRoster",
    "ContactDetails",
    "CurrentLocation",
    "Service",
    "SlotOption",
    "Staff",
    "format_date",
    "STAFF_AFFINITY_KEYS",
    "extract_staff_affinity",
    "normalize_staff_affinity",
]
