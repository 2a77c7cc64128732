"""Tests for clinic API models."""

from datetime import date

from clinic_booking.core.enums import BookingStatus
from clinic_booking.services.api.models import (
    BookingRecord,
    Clinic,
    ClinicRoster,
    Service,
    Staff,
    format_date,
)


def test_clinic_from_api_name_fallbacks():
    """Test clinic name falls back to clinic_name, then owner_name."""
    clinic = Clinic.from_api({"id": "7", "clinic_name": "", "owner_name": "Dr. Owner"})
    assert clinic.id == 7
    assert clinic.name == "Dr. Owner"


def test_clinic_from_api_coordinates():
    clinic = Clinic.from_api({"id": 1, "name": "A", "latitude": "24.7", "longitude": "bad"})
    assert clinic.latitude == 24.7
    assert clinic.longitude is None


def test_service_from_api():
    """Test service parsing normalizes affinity once at ingestion."""
    service = Service.from_api(
        {
            "id": 11,
            "title_ar": "تنظيف",
            "title": "Cleaning",
            "price": "150.00",
            "service_time": "30",
            "booking_cycle": "1",
            "staff_ids": "1-2",
        }
    )
    assert service.name == "تنظيف"
    assert service.price == 150.0
    assert service.duration_minutes == 30
    assert service.staff_ids == frozenset({1, 2})
    assert service.is_directly_bookable is True
    assert service.has_staff is True


def test_service_not_directly_bookable():
    service = Service.from_api({"id": 1, "title": "Surgery", "booking_cycle": 2})
    assert service.is_directly_bookable is False
    assert service.has_staff is False


def test_staff_from_api_name_keys():
    staff = Staff.from_api({"staff_id": 3, "full_name": "Dr. Khaled"})
    assert staff.id == 3
    assert staff.name == "Dr. Khaled"


def test_roster_from_api():
    """Test roster parsing skips malformed entries."""
    roster = ClinicRoster.from_api(
        5,
        {
            "name": "Smile",
            "owner_name": "Dr. Owner",
            "services": [{"id": 1, "title": "A", "staff_ids": "2"}, "junk"],
            "staff": [{"id": 2, "name": "Dr. B"}],
        },
    )
    assert roster.clinic_id == 5
    assert [s.id for s in roster.services] == [1]
    assert roster.find_staff(2).name == "Dr. B"
    assert roster.find_staff(None) is None
    assert roster.find_service(99) is None


def test_booking_record_status_mapping():
    """Test backend status 1 means confirmed, anything else pending."""
    confirmed = BookingRecord.from_api({"id": 1, "clinics_id": "5", "status": 1})
    pending = BookingRecord.from_api({"id": 2, "clinic_id": 5, "status": 0})
    assert confirmed.status == BookingStatus.CONFIRMED
    assert confirmed.clinic_id == 5
    assert pending.status == BookingStatus.PENDING_VERIFICATION


def test_format_date_zero_padded():
    assert format_date(date(2025, 3, 5)) == "2025-03-05"
