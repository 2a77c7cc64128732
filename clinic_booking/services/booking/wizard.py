"""New-booking wizard state machine."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Protocol

from loguru import logger

from ...core.config.settings import BookingSettings, get_settings
from ...core.enums import WizardStep
from ...core.exceptions import (
    ClinicBookingError,
    IncompatibleSelectionError,
    ValidationError,
    WizardTransitionError,
)
from ..api.models import Address, AddressRef, ClinicRoster, ContactDetails, Service
from .availability_resolver import AvailabilityResolver, DayAvailabilityMap, TimeSlotMap
from .compatibility import CompatibilityView, filter_compatible, is_compatible
from .contact_redirect import ContactRedirector, ServiceSelection
from .draft import BookingDraft
from .preselection import BookingPreselection
from .submission import SubmissionOrchestrator, SubmissionOutcome, validate_submission

# Linear step order; doctor and address steps may be passed without a selection
_FORWARD: Dict[WizardStep, WizardStep] = {
    WizardStep.CLINIC_SELECT: WizardStep.SERVICE_SELECT,
    WizardStep.SERVICE_SELECT: WizardStep.DOCTOR_SELECT,
    WizardStep.DOCTOR_SELECT: WizardStep.ADDRESS_SELECT,
    WizardStep.ADDRESS_SELECT: WizardStep.DATE_TIME_SELECT,
    WizardStep.DATE_TIME_SELECT: WizardStep.REVIEW,
}
_BACKWARD: Dict[WizardStep, WizardStep] = {v: k for k, v in _FORWARD.items()}
_BACKWARD[WizardStep.FAILED] = WizardStep.REVIEW

_LOCKED_STEPS = (WizardStep.SUBMITTING, WizardStep.SUCCESS)


class WizardCatalog(Protocol):
    """Catalog operations used by the wizard."""

    async def get_clinic_roster(self, clinic_id: int) -> ClinicRoster:
        ...

    async def get_addresses(self) -> List[Address]:
        ...

    async def add_address(self, name: str, mobile: str, address: str, city: str) -> None:
        ...


@dataclass(frozen=True)
class CompletionSummary:
    """Display-only leftovers of a successful submission."""

    doctor_name: str
    booking_id: Any
    bookings_count: int


class BookingWizard:
    """
    Owns the booking draft and the step sequence.

    The draft is only mutated through the methods below. Doctor or service
    changes drop the chosen date and time and re-run day-level resolution,
    since both were resolved against the previous selection.

    Example:
        async with ClinicApiClient(token=token) as client:
            wizard = BookingWizard.create(client)
            await wizard.select_clinic(5)
            await wizard.toggle_service(12)
            await wizard.select_doctor(3)
            ...
            outcome = await wizard.submit(ContactDetails("Sara", "0550000000"))
    """

    def __init__(
        self,
        catalog: WizardCatalog,
        resolver: AvailabilityResolver,
        orchestrator: SubmissionOrchestrator,
        redirector: ContactRedirector,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize booking wizard.

        Args:
            catalog: Clinic roster and address source
            resolver: Day/slot availability resolver
            orchestrator: Fan-out booking submission
            redirector: Contact-channel links for services not bookable online
            today: Clock for the initially displayed month
        """
        self._catalog = catalog
        self._resolver = resolver
        self._orchestrator = orchestrator
        self._redirector = redirector

        current = today()
        self.displayed_year = current.year
        self.displayed_month = current.month

        self.step = WizardStep.CLINIC_SELECT
        self.draft = BookingDraft()
        self.roster: Optional[ClinicRoster] = None
        self.addresses: List[Address] = []
        self.completion: Optional[CompletionSummary] = None
        self.failure_message: Optional[str] = None
        self.last_outcome: Optional[SubmissionOutcome] = None

    @classmethod
    def create(cls, client: Any, settings: Optional[BookingSettings] = None) -> "BookingWizard":
        """Wire a wizard to a ClinicApiClient using the configured policies."""
        settings = settings or get_settings()
        return cls(
            catalog=client.catalog,
            resolver=AvailabilityResolver(
                client.availability, max_concurrency=settings.probe_concurrency
            ),
            orchestrator=SubmissionOrchestrator(
                client.bookings,
                default_doctor_name=settings.default_doctor_name,
                connection_error_message=settings.connection_error_message,
            ),
            redirector=ContactRedirector(
                client.catalog,
                message_template=settings.contact_message_template,
                fallback_message=settings.contact_fallback_message,
            ),
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def view(self) -> CompatibilityView:
        """Doctors and services currently offerable."""
        if self.roster is None:
            return CompatibilityView(doctors=(), services=())
        return filter_compatible(self.roster, self.draft.service_ids, self.draft.doctor_id)

    @property
    def day_map(self) -> DayAvailabilityMap:
        return self._resolver.day_map

    @property
    def slot_map(self) -> TimeSlotMap:
        return self._resolver.slot_map

    @property
    def selected_services(self) -> List[Service]:
        if self.roster is None:
            return []
        found = (self.roster.find_service(sid) for sid in self.draft.service_ids)
        return [s for s in found if s is not None]

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _ensure_editable(self) -> ClinicRoster:
        if self.step in _LOCKED_STEPS:
            raise WizardTransitionError(self.step.value, self.step.value, "draft is locked")
        if self.roster is None:
            raise ValidationError("A clinic must be selected", field="clinic_id")
        return self.roster

    def _check_can_enter(self, target: WizardStep) -> None:
        if target != WizardStep.CLINIC_SELECT and self.draft.clinic_id is None:
            raise WizardTransitionError(self.step.value, target.value, "no clinic selected")
        if target in (WizardStep.DOCTOR_SELECT, WizardStep.DATE_TIME_SELECT):
            if not self.draft.service_ids:
                raise WizardTransitionError(self.step.value, target.value, "no service selected")

    # ------------------------------------------------------------------
    # Selections
    # ------------------------------------------------------------------

    async def select_clinic(self, clinic_id: int) -> ClinicRoster:
        """
        Load a clinic's roster and start a fresh draft for it.

        Raises:
            WizardTransitionError: A submission is in flight
            ClinicBookingError: Roster could not be loaded (state unchanged)
        """
        if self.step == WizardStep.SUBMITTING:
            raise WizardTransitionError(self.step.value, WizardStep.SERVICE_SELECT.value)

        roster = await self._catalog.get_clinic_roster(clinic_id)

        self._resolver.clear()
        self.roster = roster
        self.draft = BookingDraft(clinic_id=clinic_id)
        self.completion = None
        self.failure_message = None
        self.last_outcome = None
        self.step = WizardStep.SERVICE_SELECT
        logger.info(
            f"Clinic {clinic_id} selected: {len(roster.services)} services, "
            f"{len(roster.staff)} staff"
        )
        return roster

    async def load_addresses(self) -> List[Address]:
        """Fetch saved addresses; the address step is optional so failures leave it empty."""
        try:
            self.addresses = await self._catalog.get_addresses()
        except ClinicBookingError as e:
            logger.warning(f"Saved addresses unavailable: {e}")
            self.addresses = []
        return self.addresses

    async def toggle_service(self, service_id: int) -> ServiceSelection:
        """
        Add or remove a service from the draft.

        Services not bookable online yield a contact redirect and leave the
        draft untouched. Removing a service the chosen doctor was
        needed for clears the doctor.

        Raises:
            ValidationError: Unknown service
            IncompatibleSelectionError: Chosen doctor cannot perform the service
        """
        roster = self._ensure_editable()
        service = roster.find_service(service_id)
        if service is None:
            raise ValidationError(f"Unknown service {service_id}", field="service_ids")

        if not service.is_directly_bookable:
            return await self._redirector.link_for(service)

        if service_id in self.draft.service_ids:
            self.draft.service_ids.remove(service_id)
            selected = False
            if not is_compatible(roster, self.draft.service_ids, self.draft.doctor_id):
                logger.info(
                    f"Doctor {self.draft.doctor_id} covers none of the remaining services; cleared"
                )
                self.draft.doctor_id = None
        else:
            doctor_id = self.draft.doctor_id
            if doctor_id is not None and doctor_id not in service.staff_ids:
                raise IncompatibleSelectionError(doctor_id, service_id)
            self.draft.service_ids.append(service_id)
            selected = True

        await self._selection_changed()
        return ServiceSelection(service_id=service_id, selected=selected)

    async def select_doctor(self, doctor_id: Optional[int]) -> None:
        """
        Choose a doctor, or None to let the clinic assign one.

        On the service step the service set is cleared so both are picked
        together; elsewhere the doctor must cover the selected services.

        Raises:
            ValidationError: Doctor not on the clinic's roster
            IncompatibleSelectionError: Doctor cannot perform any selected service
        """
        roster = self._ensure_editable()
        if doctor_id is not None and roster.find_staff(doctor_id) is None:
            raise ValidationError(f"Unknown doctor {doctor_id}", field="doctor_id")

        if self.step == WizardStep.SERVICE_SELECT:
            self.draft.service_ids.clear()
        elif not is_compatible(roster, self.draft.service_ids, doctor_id):
            raise IncompatibleSelectionError(doctor_id)

        self.draft.doctor_id = doctor_id
        await self._selection_changed()

    def select_address(self, address: Optional[AddressRef]) -> None:
        self._ensure_editable()
        self.draft.address = address

    async def add_address(self, name: str, mobile: str, address: str, city: str) -> Optional[Address]:
        """Save a new address and select it."""
        self._ensure_editable()
        if not address or not address.strip():
            raise ValidationError("Address text is required", field="address")

        await self._catalog.add_address(name, mobile, address.strip(), city)
        self.addresses = await self._catalog.get_addresses()

        created = next((a for a in self.addresses if a.address == address.strip()), None)
        if created is None and self.addresses:
            created = self.addresses[-1]
        self.draft.address = created
        return created

    async def _selection_changed(self) -> None:
        self.draft.clear_schedule()
        self._resolver.clear_slots()
        await self._resolver.resolve_days(
            self.draft.query(), self.displayed_year, self.displayed_month
        )

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    async def show_month(self, year: int, month: int) -> Optional[DayAvailabilityMap]:
        """
        Display a month and resolve which of its days are open.

        Returns:
            The resolved map, or None if a later change superseded it
        """
        if not 1 <= month <= 12:
            raise ValidationError(f"Invalid month {month}", field="month")
        self.displayed_year = year
        self.displayed_month = month
        return await self._resolver.resolve_days(self.draft.query(), year, month)

    async def select_date(self, day: date) -> bool:
        """
        Pick a date and resolve its slots.

        Only days of the displayed month explicitly resolved as available are
        accepted; anything else is ignored without a query.
        """
        if self.step in _LOCKED_STEPS:
            return False
        day_map = self._resolver.day_map
        if not day_map.matches(self.draft.query().key, day.year, day.month):
            logger.debug(f"Date {day} is outside the resolved month")
            return False
        if not day_map.is_available(day.day):
            logger.debug(f"Date {day} is not available")
            return False

        self.draft.date = day
        self.draft.time = None
        await self._resolver.resolve_slots(self.draft.query(), day)
        return True

    def select_time(self, label: str) -> str:
        """
        Pick a slot of the selected date by its label.

        Returns:
            The slot value token stored in the draft
        """
        slot_map = self._resolver.slot_map
        value = slot_map.value_for(label) if slot_map.day == self.draft.date else None
        if self.draft.date is None or value is None:
            raise ValidationError(f"Time {label} is not available", field="time")
        self.draft.time = value
        return value

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> WizardStep:
        """Move to the next step if its guard allows."""
        target = _FORWARD.get(self.step)
        if target is None:
            raise WizardTransitionError(self.step.value, "next", "no forward step")
        self._check_can_enter(target)
        self.step = target
        return self.step

    def back(self) -> WizardStep:
        """Move to the previous step; a failed submission returns to review."""
        target = _BACKWARD.get(self.step)
        if target is None:
            raise WizardTransitionError(self.step.value, "previous", "no backward step")
        self.step = target
        return self.step

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, contact: ContactDetails) -> SubmissionOutcome:
        """
        Submit the draft from review (or retry after a failure).

        Raises:
            WizardTransitionError: Not at review or failed
            ValidationError: Name, phone, clinic or services missing
            IncompatibleSelectionError: Doctor cannot perform any selected service
        """
        if self.step not in (WizardStep.REVIEW, WizardStep.FAILED):
            raise WizardTransitionError(self.step.value, WizardStep.SUBMITTING.value)
        validate_submission(self.draft, contact, self.roster)

        self.step = WizardStep.SUBMITTING
        self.failure_message = None
        try:
            outcome = await self._orchestrator.submit(self.draft.copy(), contact, self.roster)
        except BaseException:
            self.step = WizardStep.FAILED
            self.failure_message = self._orchestrator.connection_error_message
            raise

        self.last_outcome = outcome
        if outcome.success:
            self.completion = CompletionSummary(
                doctor_name=outcome.doctor_name,
                booking_id=outcome.booking_id,
                bookings_count=outcome.bookings_count,
            )
            self.draft = BookingDraft()
            self._resolver.clear()
            self.step = WizardStep.SUCCESS
            logger.info(f"Submission succeeded: {outcome.bookings_count} booking(s)")
        else:
            self.failure_message = outcome.error_message
            self.step = WizardStep.FAILED
            logger.warning(f"Submission failed: {outcome.error_message}")
        return outcome

    def reset(self) -> None:
        """Abandon everything and start over at clinic selection."""
        self._resolver.clear()
        self.step = WizardStep.CLINIC_SELECT
        self.draft = BookingDraft()
        self.roster = None
        self.completion = None
        self.failure_message = None
        self.last_outcome = None

    async def apply_preselection(self, preselection: BookingPreselection) -> None:
        """Start the draft from a selection made elsewhere (clinic, then doctor, then month)."""
        roster = await self.select_clinic(preselection.clinic_id)

        if preselection.doctor_id is not None:
            if roster.find_staff(preselection.doctor_id) is not None:
                await self.select_doctor(preselection.doctor_id)
            else:
                logger.warning(
                    f"Preselected doctor {preselection.doctor_id} not on clinic "
                    f"{preselection.clinic_id} roster"
                )

        if preselection.day is not None:
            await self.show_month(preselection.day.year, preselection.day.month)
