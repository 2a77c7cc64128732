"""The in-progress booking selection owned by the wizard."""

import datetime as dt
from dataclasses import dataclass, field, replace
from typing import List, Optional

from ..api.models import AddressRef
from .availability_resolver import AvailabilityQuery


@dataclass
class BookingDraft:
    """
    Mutable booking selection.

    ``service_ids`` keeps selection order: the first entry is the primary
    service for availability queries.
    """

    clinic_id: Optional[int] = None
    service_ids: List[int] = field(default_factory=list)
    doctor_id: Optional[int] = None
    address: Optional[AddressRef] = None
    date: Optional[dt.date] = None
    time: Optional[str] = None

    def query(self) -> AvailabilityQuery:
        return AvailabilityQuery(
            clinic_id=self.clinic_id,
            doctor_id=self.doctor_id,
            service_ids=tuple(self.service_ids),
        )

    def copy(self) -> "BookingDraft":
        return replace(self, service_ids=list(self.service_ids))

    def clear_schedule(self) -> None:
        self.date = None
        self.time = None

    @property
    def is_empty(self) -> bool:
        return (
            self.clinic_id is None
            and not self.service_ids
            and self.doctor_id is None
            and self.address is None
            and self.date is None
            and self.time is None
        )
