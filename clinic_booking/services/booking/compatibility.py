"""Doctor/service compatibility filtering for the booking wizard."""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Sequence, Tuple

from ..api.models import ClinicRoster, Service, Staff


@dataclass(frozen=True)
class CompatibilityView:
    """Doctors and services that may be offered for the current selection."""

    doctors: Tuple[Staff, ...]
    services: Tuple[Service, ...]

    @property
    def doctor_ids(self) -> FrozenSet[int]:
        return frozenset(d.id for d in self.doctors)

    @property
    def service_ids(self) -> FrozenSet[int]:
        return frozenset(s.id for s in self.services)


def eligible_doctor_ids(
    services: Iterable[Service], selected_service_ids: Sequence[int] = ()
) -> FrozenSet[int]:
    """
    Doctors able to perform at least one of the relevant services.

    With no selection every offered service is relevant; otherwise only the
    selected ones. Multiple selected services combine by union, so a doctor
    qualifies by covering any one of them.
    """
    selected = set(selected_service_ids)
    eligible: FrozenSet[int] = frozenset()
    for service in services:
        if selected and service.id not in selected:
            continue
        eligible |= service.staff_ids
    return eligible


def services_for_doctor(services: Iterable[Service], doctor_id: int) -> Tuple[Service, ...]:
    """Services whose staff-affinity contains the doctor (never staff-less ones)."""
    return tuple(s for s in services if doctor_id in s.staff_ids)


def filter_compatible(
    roster: ClinicRoster,
    selected_service_ids: Sequence[int] = (),
    selected_doctor_id: Optional[int] = None,
) -> CompatibilityView:
    """
    Compute the mutually consistent doctor and service lists.

    Pure function of its inputs; roster order is kept in both lists.

    Args:
        roster: Loaded clinic catalog
        selected_service_ids: Services currently in the draft
        selected_doctor_id: Doctor currently in the draft, if any

    Returns:
        CompatibilityView with eligible doctors and offerable services
    """
    doctor_ids = eligible_doctor_ids(roster.services, selected_service_ids)
    doctors = tuple(d for d in roster.staff if d.id in doctor_ids)

    if selected_doctor_id is None:
        services = tuple(roster.services)
    else:
        services = services_for_doctor(roster.services, selected_doctor_id)

    return CompatibilityView(doctors=doctors, services=services)


def is_compatible(
    roster: ClinicRoster, service_ids: Sequence[int], doctor_id: Optional[int]
) -> bool:
    """Whether a (service set, doctor) pair may coexist in a draft."""
    if doctor_id is None or not service_ids:
        return True
    return doctor_id in eligible_doctor_ids(roster.services, service_ids)
