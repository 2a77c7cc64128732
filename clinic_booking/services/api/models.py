"""Clinic API models - TypedDict and dataclass definitions."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, TypedDict, Union

from ...core.enums import BookingStatus
from .normalization import extract_staff_affinity


class ClinicPayload(TypedDict, total=False):
    """Raw clinic entry from ``GET /clinics``."""

    id: int
    name: str
    clinic_name: str
    owner_name: str
    clinic_address: str
    latitude: Any
    longitude: Any


class ServicePayload(TypedDict, total=False):
    """Raw service entry from ``GET /clinics/{id}``."""

    id: int
    title: str
    title_ar: str
    price: Any
    service_time: Any
    discount: Any
    booking_cycle: Any
    staff_ids: Any


class BookingPayload(TypedDict, total=False):
    """Body of ``POST /user/bookings``."""

    clinics_id: int
    service_id: int
    staff_id: int
    date: str
    time: str
    address_id: int
    latitude: float
    longitude: float
    name: str
    phone: str
    additional_service_ids: List[int]


def _first(payload: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first non-empty value among several candidate keys."""
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return default


def _as_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Clinic:
    """Clinic as listed by the catalog."""

    id: int
    name: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    owner_name: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Clinic":
        return cls(
            id=int(payload["id"]),
            name=_first(payload, "name", "clinic_name", "owner_name", default=""),
            address=_first(payload, "clinic_address", "address"),
            latitude=_as_float(_first(payload, "latitude", "lat")),
            longitude=_as_float(_first(payload, "longitude", "lng", "long")),
            owner_name=payload.get("owner_name"),
        )


@dataclass(frozen=True)
class Service:
    """Bookable service with its canonical staff-affinity set."""

    id: int
    name: str
    price: Optional[float] = None
    duration_minutes: Optional[int] = None
    discount: Optional[float] = None
    booking_cycle: Optional[int] = 1
    staff_ids: FrozenSet[int] = frozenset()

    @property
    def is_directly_bookable(self) -> bool:
        """Only booking cycle 1 can be booked inside the wizard."""
        return self.booking_cycle == 1

    @property
    def has_staff(self) -> bool:
        return bool(self.staff_ids)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Service":
        return cls(
            id=int(payload["id"]),
            name=_first(payload, "title_ar", "title", "name", default=""),
            price=_as_float(payload.get("price")),
            duration_minutes=_as_int(payload.get("service_time")),
            discount=_as_float(payload.get("discount")),
            booking_cycle=_as_int(payload.get("booking_cycle")),
            staff_ids=extract_staff_affinity(payload),
        )


@dataclass(frozen=True)
class Staff:
    """Doctor on a clinic's roster."""

    id: int
    name: str
    specialty: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Staff":
        return cls(
            id=int(_first(payload, "id", "staff_id")),
            name=_first(payload, "name", "name_ar", "staff_name", "full_name", default=""),
            specialty=_first(payload, "specialty", "specialty_ar"),
        )


@dataclass(frozen=True)
class ClinicRoster:
    """Services and staff of one clinic, as loaded for the current session."""

    clinic_id: int
    name: Optional[str] = None
    owner_name: Optional[str] = None
    services: Tuple[Service, ...] = ()
    staff: Tuple[Staff, ...] = ()

    def find_staff(self, staff_id: Optional[int]) -> Optional[Staff]:
        if staff_id is None:
            return None
        return next((s for s in self.staff if s.id == staff_id), None)

    def find_service(self, service_id: int) -> Optional[Service]:
        return next((s for s in self.services if s.id == service_id), None)

    @classmethod
    def from_api(cls, clinic_id: int, payload: Dict[str, Any]) -> "ClinicRoster":
        services = payload.get("services") or []
        staff = payload.get("staff") or []
        return cls(
            clinic_id=clinic_id,
            name=_first(payload, "name", "clinic_name"),
            owner_name=payload.get("owner_name"),
            services=tuple(Service.from_api(s) for s in services if isinstance(s, dict)),
            staff=tuple(Staff.from_api(s) for s in staff if isinstance(s, dict)),
        )


@dataclass(frozen=True)
class Address:
    """Saved user address."""

    id: int
    address: str
    city: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Address":
        return cls(
            id=int(payload["id"]),
            address=_first(payload, "address", "title", "name", default=""),
            city=payload.get("city"),
        )


@dataclass(frozen=True)
class CurrentLocation:
    """Pseudo-address carrying live coordinates instead of a saved address."""

    latitude: float
    longitude: float


AddressRef = Union[Address, CurrentLocation]


@dataclass(frozen=True)
class SlotOption:
    """One bookable time: display label and the opaque token the backend expects."""

    label: str
    value: str


@dataclass(frozen=True)
class ContactDetails:
    """Name and phone the booking is made under."""

    name: str
    phone: str


@dataclass
class BookingRecord:
    """Booking created by the backend."""

    id: Any
    clinic_id: Optional[int] = None
    service_id: Optional[int] = None
    staff_id: Optional[int] = None
    date: Optional[str] = None
    time: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING_VERIFICATION
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "BookingRecord":
        return cls(
            id=payload.get("id"),
            clinic_id=_as_int(_first(payload, "clinics_id", "clinic_id")),
            service_id=_as_int(_first(payload, "service_id", "serviceId")),
            staff_id=_as_int(payload.get("staff_id")),
            date=payload.get("date"),
            time=payload.get("time"),
            status=BookingStatus.from_api(payload.get("status")),
            raw=dict(payload),
        )


def format_date(day: date) -> str:
    """Zero-padded ``YYYY-MM-DD`` as the backend expects."""
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"
