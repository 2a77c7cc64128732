"""Tests for doctor/service compatibility filtering."""

from clinic_booking.services.api.models import ClinicRoster, Service, Staff
from clinic_booking.services.booking.compatibility import (
    eligible_doctor_ids,
    filter_compatible,
    is_compatible,
)


def test_scenario_two_services_one_without_staff():
    """Test a staff-less service is hidden once a doctor is picked."""
    roster = ClinicRoster(
        clinic_id=1,
        services=(
            Service(id=1, name="S1", staff_ids=frozenset({1, 2})),
            Service(id=2, name="S2", staff_ids=frozenset()),
        ),
        staff=(Staff(id=1, name="A"), Staff(id=2, name="B")),
    )

    view = filter_compatible(roster)
    assert view.doctor_ids == frozenset({1, 2})

    with_doctor = filter_compatible(roster, selected_doctor_id=1)
    assert [s.id for s in with_doctor.services] == [1]


def test_no_selection_lists_all_services(roster):
    view = filter_compatible(roster)
    assert [s.id for s in view.services] == [11, 12, 13, 14, 15]


def test_no_selection_doctors_are_union_over_clinic(roster):
    """Test doctor 4, who performs nothing, is never eligible."""
    view = filter_compatible(roster)
    assert [d.id for d in view.doctors] == [1, 2, 3]


def test_selected_services_combine_by_union(roster):
    """Test a doctor qualifies by covering any one selected service."""
    assert eligible_doctor_ids(roster.services, [11, 13]) == frozenset({1, 2, 3})
    assert eligible_doctor_ids(roster.services, [13]) == frozenset({3})


def test_eligible_doctor_iff_affinity_intersects(roster):
    for selected in ([11], [12], [13], [11, 14], [12, 13]):
        union = frozenset().union(
            *(s.staff_ids for s in roster.services if s.id in selected)
        )
        view = filter_compatible(roster, selected)
        for doctor in roster.staff:
            assert (doctor.id in view.doctor_ids) == (doctor.id in union)


def test_doctor_narrows_services(roster):
    view = filter_compatible(roster, selected_doctor_id=3)
    assert [s.id for s in view.services] == [13, 14]


def test_staffless_service_never_listed_with_doctor(roster):
    for doctor in roster.staff:
        view = filter_compatible(roster, selected_doctor_id=doctor.id)
        assert 12 not in view.service_ids


def test_filter_is_pure(roster):
    """Test running the filter twice gives the same lists."""
    first = filter_compatible(roster, [11], 2)
    second = filter_compatible(roster, [11], 2)
    assert first == second


def test_roster_order_preserved(roster):
    view = filter_compatible(roster, selected_doctor_id=2)
    assert [s.id for s in view.services] == [11, 14]


def test_is_compatible(roster):
    assert is_compatible(roster, [13], 3) is True
    assert is_compatible(roster, [13], 1) is False
    assert is_compatible(roster, [], 1) is True
    assert is_compatible(roster, [13], None) is True
