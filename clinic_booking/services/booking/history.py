"""The user's booking list with display names resolved from clinic rosters."""

import asyncio
from typing import Any, Dict, List, Optional, Protocol

from loguru import logger

from ...core.exceptions import ClinicBookingError
from ..api.models import BookingRecord, ClinicRoster
from .submission import display_doctor_name

DEFAULT_CLINIC_NAME = "عيادة غير محددة"
DEFAULT_SERVICE_NAME = "الخدمة"


class BookingSource(Protocol):
    async def list_bookings(self) -> List[BookingRecord]:
        ...

    async def delete_booking(self, booking_id: Any) -> None:
        ...


class RosterSource(Protocol):
    async def get_clinic_roster(self, clinic_id: int) -> ClinicRoster:
        ...


class BookingHistory:
    """Loads bookings and the rosters needed to display them."""

    def __init__(self, bookings: BookingSource, catalog: RosterSource, default_doctor_name: str):
        self._bookings = bookings
        self._catalog = catalog
        self._default_doctor_name = default_doctor_name
        self.bookings: List[BookingRecord] = []
        self.rosters: Dict[int, ClinicRoster] = {}

    async def _load_roster(self, clinic_id: int) -> None:
        try:
            self.rosters[clinic_id] = await self._catalog.get_clinic_roster(clinic_id)
        except ClinicBookingError as e:
            logger.warning(f"Roster of clinic {clinic_id} unavailable: {e}")

    async def refresh(self) -> List[BookingRecord]:
        """
        Reload the booking list, then every distinct clinic roster concurrently.

        A failed list fetch keeps the previous list.
        """
        try:
            bookings = await self._bookings.list_bookings()
        except ClinicBookingError as e:
            logger.error(f"Could not load bookings: {e}")
            return self.bookings

        self.bookings = bookings
        clinic_ids = {b.clinic_id for b in bookings if b.clinic_id is not None}
        await asyncio.gather(*(self._load_roster(cid) for cid in clinic_ids))
        logger.info(f"Loaded {len(bookings)} bookings across {len(clinic_ids)} clinics")
        return self.bookings

    async def delete(self, booking_id: Any) -> bool:
        """Delete remotely; the local list only changes on success."""
        try:
            await self._bookings.delete_booking(booking_id)
        except ClinicBookingError as e:
            logger.error(f"Could not delete booking {booking_id}: {e}")
            return False
        self.bookings = [b for b in self.bookings if b.id != booking_id]
        return True

    def find(self, booking_id: Any) -> Optional[BookingRecord]:
        return next((b for b in self.bookings if b.id == booking_id), None)

    def doctor_name_for(self, record: BookingRecord) -> str:
        roster = self.rosters.get(record.clinic_id) if record.clinic_id is not None else None
        return display_doctor_name(roster, record.staff_id, self._default_doctor_name)

    def clinic_name_for(self, clinic_id: Optional[int]) -> str:
        roster = self.rosters.get(clinic_id) if clinic_id is not None else None
        if roster is None:
            return DEFAULT_CLINIC_NAME
        return roster.name or roster.owner_name or DEFAULT_CLINIC_NAME

    def service_name_for(self, record: BookingRecord) -> str:
        roster = self.rosters.get(record.clinic_id) if record.clinic_id is not None else None
        if roster is not None and record.service_id is not None:
            service = roster.find_service(record.service_id)
            if service is not None and service.name:
                return service.name
        return record.raw.get("services") or record.raw.get("service_name") or DEFAULT_SERVICE_NAME
