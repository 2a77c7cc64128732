"""Explicit hand-off of a pre-chosen clinic/doctor/date into the wizard."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class BookingPreselection:
    """Selection made on another screen (e.g. a doctor's profile page)."""

    clinic_id: int
    doctor_id: Optional[int] = None
    day: Optional[date] = None

    @classmethod
    def from_params(cls, params: Dict[str, Any]) -> Optional["BookingPreselection"]:
        """
        Build from navigation parameters (string values as found in a URL).

        Returns:
            None when no usable clinic id is present
        """
        try:
            clinic_id = int(params["clinicId"])
        except (KeyError, TypeError, ValueError):
            return None

        doctor_id: Optional[int] = None
        if params.get("doctorId") not in (None, ""):
            try:
                doctor_id = int(params["doctorId"])
            except (TypeError, ValueError):
                doctor_id = None

        day: Optional[date] = None
        if params.get("date"):
            try:
                day = date.fromisoformat(str(params["date"]))
            except ValueError:
                day = None

        return cls(clinic_id=clinic_id, doctor_id=doctor_id, day=day)
