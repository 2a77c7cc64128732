"""Fan-out submission of a multi-service booking draft."""

import asyncio
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Tuple

import aiohttp
from loguru import logger

from ...core.exceptions import (
    ClinicBookingError,
    IncompatibleSelectionError,
    NetworkError,
    ValidationError,
)
from ..api.models import (
    Address,
    BookingPayload,
    BookingRecord,
    ClinicRoster,
    ContactDetails,
    CurrentLocation,
    format_date,
)
from .compatibility import is_compatible
from .draft import BookingDraft


class BookingSink(Protocol):
    """What the orchestrator needs from the API layer."""

    async def create_booking(self, payload: BookingPayload) -> Any:
        ...


@dataclass(frozen=True)
class SubmissionOutcome:
    """
    Result of one fan-out submission.

    ``created`` lists every booking the backend accepted, including those of
    a batch that failed overall; they are not rolled back.
    """

    success: bool
    booking_id: Any = None
    bookings_count: int = 0
    doctor_name: Optional[str] = None
    error_message: Optional[str] = None
    created: Tuple[BookingRecord, ...] = ()


def validate_submission(
    draft: BookingDraft, contact: ContactDetails, roster: Optional[ClinicRoster] = None
) -> None:
    """
    Check the submission preconditions without touching the network.

    With a roster the doctor must also cover the selected services.

    Raises:
        ValidationError: Name, phone, clinic or services missing
        IncompatibleSelectionError: Doctor cannot perform any selected service
    """
    if not contact.name or not contact.name.strip():
        raise ValidationError("Name is required", field="name")
    if not contact.phone or not contact.phone.strip():
        raise ValidationError("Phone number is required", field="phone")
    if draft.clinic_id is None:
        raise ValidationError("A clinic must be selected", field="clinic_id")
    if not draft.service_ids:
        raise ValidationError("At least one service must be selected", field="service_ids")
    if roster is not None and not is_compatible(roster, draft.service_ids, draft.doctor_id):
        raise IncompatibleSelectionError(draft.doctor_id)


def display_doctor_name(
    roster: Optional[ClinicRoster], doctor_id: Optional[int], default: str
) -> str:
    """Staff name, else the clinic owner's name, else the placeholder."""
    if roster is not None:
        staff = roster.find_staff(doctor_id)
        if staff is not None and staff.name:
            return staff.name
        if roster.owner_name:
            return roster.owner_name
    return default


class SubmissionOrchestrator:
    """Creates one booking per selected service, all sharing the draft's schedule."""

    def __init__(
        self,
        sink: BookingSink,
        default_doctor_name: str,
        connection_error_message: str,
    ):
        """
        Initialize submission orchestrator.

        Args:
            sink: API endpoint that creates bookings
            default_doctor_name: Display name when no doctor can be resolved
            connection_error_message: Shown when a request never reached the backend
        """
        self._sink = sink
        self._default_doctor_name = default_doctor_name
        self._connection_error_message = connection_error_message

    @property
    def connection_error_message(self) -> str:
        return self._connection_error_message

    def build_payloads(self, draft: BookingDraft, contact: ContactDetails) -> List[BookingPayload]:
        """
        Build one payload per selected service.

        Every payload carries the other selected services as the secondary
        list when more than one service is selected.
        """
        shared: BookingPayload = {
            "clinics_id": draft.clinic_id,
            "name": contact.name.strip(),
            "phone": contact.phone.strip(),
        }
        if draft.doctor_id is not None:
            shared["staff_id"] = draft.doctor_id
        if draft.date is not None:
            shared["date"] = format_date(draft.date)
        if draft.time is not None:
            shared["time"] = draft.time
        if isinstance(draft.address, Address):
            shared["address_id"] = draft.address.id
        elif isinstance(draft.address, CurrentLocation):
            shared["latitude"] = draft.address.latitude
            shared["longitude"] = draft.address.longitude

        payloads: List[BookingPayload] = []
        for service_id in draft.service_ids:
            payload: BookingPayload = {**shared, "service_id": service_id}
            if len(draft.service_ids) > 1:
                payload["additional_service_ids"] = [
                    other for other in draft.service_ids if other != service_id
                ]
            payloads.append(payload)
        return payloads

    def _failure_message(self, error: BaseException) -> str:
        if isinstance(error, NetworkError) or not isinstance(error, ClinicBookingError):
            return self._connection_error_message
        return error.message

    async def submit(
        self,
        draft: BookingDraft,
        contact: ContactDetails,
        roster: Optional[ClinicRoster] = None,
    ) -> SubmissionOutcome:
        """
        Submit the draft as a batch of bookings.

        Args:
            draft: Selection to book
            contact: Name and phone for the booking
            roster: Loaded clinic roster, used for the display doctor name

        Returns:
            SubmissionOutcome; failure carries the first failing request's message

        Raises:
            ValidationError: Preconditions not met (nothing is sent)
        """
        validate_submission(draft, contact, roster)
        payloads = self.build_payloads(draft, contact)

        logger.info(
            f"Submitting {len(payloads)} booking(s) for clinic {draft.clinic_id}, "
            f"doctor {draft.doctor_id}"
        )
        results = await asyncio.gather(
            *(self._sink.create_booking(p) for p in payloads), return_exceptions=True
        )

        created: List[BookingRecord] = []
        first_error: Optional[BaseException] = None
        for payload, result in zip(payloads, results):
            if isinstance(result, BaseException):
                if not isinstance(
                    result, (ClinicBookingError, aiohttp.ClientError, asyncio.TimeoutError)
                ):
                    raise result
                logger.warning(f"Booking for service {payload['service_id']} failed: {result}")
                if first_error is None:
                    first_error = result
                continue
            created.append(
                BookingRecord(
                    id=result,
                    clinic_id=draft.clinic_id,
                    service_id=payload["service_id"],
                    staff_id=draft.doctor_id,
                    date=payload.get("date"),
                    time=payload.get("time"),
                )
            )

        if first_error is not None:
            if created:
                logger.warning(
                    f"Partial submission: {len(created)} booking(s) created and kept "
                    f"({', '.join(str(r.id) for r in created)})"
                )
            return SubmissionOutcome(
                success=False,
                error_message=self._failure_message(first_error),
                created=tuple(created),
                bookings_count=len(created),
            )

        return SubmissionOutcome(
            success=True,
            booking_id=created[0].id,
            bookings_count=len(created),
            doctor_name=display_doctor_name(roster, draft.doctor_id, self._default_doctor_name),
            created=tuple(created),
        )
