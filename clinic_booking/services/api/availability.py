"""Availability endpoint - free time slots of a doctor on one date."""

from datetime import date
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from .base import ApiEndpoint, unwrap
from .models import SlotOption, format_date

# Query parameter carrying the secondary services of a multi-service booking
ADDITIONAL_SERVICES_PARAM = "additional_service_ids[]"


def build_availability_params(
    staff_id: Optional[int],
    day: date,
    service_id: int,
    additional_service_ids: Sequence[int] = (),
) -> List[Tuple[str, str]]:
    """
    Build the query string of an availability probe.

    The first selected service travels as ``service_id``; the rest, if any,
    are repeated under the list parameter.
    """
    params: List[Tuple[str, str]] = []
    if staff_id is not None:
        params.append(("staff_id", str(staff_id)))
    params.append(("date", format_date(day)))
    params.append(("service_id", str(service_id)))
    for extra_id in additional_service_ids:
        params.append((ADDITIONAL_SERVICES_PARAM, str(extra_id)))
    return params


class AvailabilityApi(ApiEndpoint):
    """Probes free time slots."""

    async def get_available_times(
        self,
        clinic_id: int,
        staff_id: Optional[int],
        day: date,
        service_id: int,
        additional_service_ids: Sequence[int] = (),
    ) -> List[SlotOption]:
        """
        Get the free slots for one date.

        Args:
            clinic_id: Numeric clinic id
            staff_id: Doctor id (omitted from the query when None)
            day: Date to probe
            service_id: Primary selected service
            additional_service_ids: Remaining selected services

        Returns:
            Slots in backend order; empty when the day has none

        Raises:
            ApiValidationError: Date out of range or otherwise rejected (422)
            ApiError: Any other non-success response
            NetworkError: Transport failure
        """
        params = build_availability_params(staff_id, day, service_id, additional_service_ids)
        data = unwrap(
            await self._request("GET", f"/clinics/available_times/{clinic_id}", params=params)
        )
        if not isinstance(data, dict):
            return []

        slots = [SlotOption(label=str(label), value=str(value)) for label, value in data.items()]
        logger.debug(f"Clinic {clinic_id} staff {staff_id} on {format_date(day)}: {len(slots)} slots")
        return slots
