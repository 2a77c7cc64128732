"""Day-level and slot-level availability resolution with supersession."""

import asyncio
import calendar
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

import aiohttp
from loguru import logger

from ...core.enums import ResolutionMode
from ...core.exceptions import ClinicBookingError
from ..api.models import SlotOption, format_date

AvailabilityKey = Tuple[int, Optional[int], Tuple[int, ...]]


class AvailabilitySource(Protocol):
    """What the resolver needs from the API layer."""

    async def get_available_times(
        self,
        clinic_id: int,
        staff_id: Optional[int],
        day: date,
        service_id: int,
        additional_service_ids: Sequence[int] = (),
    ) -> List[SlotOption]:
        ...


@dataclass(frozen=True)
class AvailabilityQuery:
    """Clinic, doctor and services that availability is resolved for."""

    clinic_id: Optional[int]
    doctor_id: Optional[int]
    service_ids: Tuple[int, ...] = ()

    @property
    def key(self) -> Optional[AvailabilityKey]:
        """Identity of the query; service order does not matter here."""
        if self.clinic_id is None:
            return None
        return (self.clinic_id, self.doctor_id, tuple(sorted(self.service_ids)))

    @property
    def primary_service_id(self) -> Optional[int]:
        return self.service_ids[0] if self.service_ids else None

    @property
    def additional_service_ids(self) -> Tuple[int, ...]:
        return self.service_ids[1:]

    @property
    def can_resolve(self) -> bool:
        """Resolution needs a clinic, a doctor and at least one service."""
        return self.clinic_id is not None and self.doctor_id is not None and bool(self.service_ids)


@dataclass(frozen=True)
class DayAvailabilityMap:
    """Which days of one displayed month have at least one free slot."""

    key: Optional[AvailabilityKey]
    year: int
    month: int
    days: Mapping[int, bool] = field(default_factory=dict)
    complete: bool = False

    def is_available(self, day: int) -> bool:
        """Only days explicitly resolved as available may be selected."""
        return self.days.get(day) is True

    def is_resolved(self, day: int) -> bool:
        return day in self.days

    def available_days(self) -> List[int]:
        return sorted(d for d, ok in self.days.items() if ok)

    def matches(self, key: Optional[AvailabilityKey], year: int, month: int) -> bool:
        return self.key == key and self.year == year and self.month == month


@dataclass(frozen=True)
class TimeSlotMap:
    """Free slots of one date."""

    key: Optional[AvailabilityKey]
    day: Optional[date]
    slots: Tuple[SlotOption, ...] = ()

    @property
    def labels(self) -> List[str]:
        return [s.label for s in self.slots]

    def value_for(self, label: str) -> Optional[str]:
        return next((s.value for s in self.slots if s.label == label), None)

    def __len__(self) -> int:
        return len(self.slots)


# Anything the API layer can raise for a failed probe
PROBE_ERRORS = (ClinicBookingError, aiohttp.ClientError, asyncio.TimeoutError)


class AvailabilityResolver:
    """
    Resolves which days and which slots are bookable for a draft.

    Each mode keeps one published map. A new resolution cancels whatever is
    still in flight for that mode, publishes an empty map straight away and
    replaces it wholesale once all probes have settled. Results of a
    superseded batch are never published.
    """

    def __init__(
        self,
        source: AvailabilitySource,
        max_concurrency: int = 10,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize availability resolver.

        Args:
            source: API endpoint used for per-date probes
            max_concurrency: Maximum probes in flight at once
            today: Clock used to skip past days of the current month
        """
        self._source = source
        self._max_concurrency = max_concurrency
        self._today = today

        self._generations: Dict[ResolutionMode, int] = {mode: 0 for mode in ResolutionMode}
        self._tasks: Dict[ResolutionMode, Optional[asyncio.Task]] = {
            mode: None for mode in ResolutionMode
        }

        current = today()
        self._day_map = DayAvailabilityMap(key=None, year=current.year, month=current.month)
        self._slot_map = TimeSlotMap(key=None, day=None)

    @property
    def day_map(self) -> DayAvailabilityMap:
        return self._day_map

    @property
    def slot_map(self) -> TimeSlotMap:
        return self._slot_map

    def is_day_available(self, day: int) -> bool:
        return self._day_map.is_available(day)

    def candidate_days(self, year: int, month: int) -> List[int]:
        """Days to probe: from today in the current month, from the 1st otherwise."""
        today = self._today()
        last_day = calendar.monthrange(year, month)[1]
        start = today.day if (today.year, today.month) == (year, month) else 1
        return list(range(start, last_day + 1))

    def _supersede(self, mode: ResolutionMode) -> int:
        """Cancel the in-flight batch of a mode and open a new generation."""
        task = self._tasks[mode]
        if task is not None and not task.done():
            task.cancel()
            logger.debug(f"Cancelled superseded {mode.value} resolution")
        self._tasks[mode] = None
        self._generations[mode] += 1
        return self._generations[mode]

    def clear(self) -> None:
        """Drop both maps and cancel anything in flight."""
        for mode in ResolutionMode:
            self._supersede(mode)
        self._day_map = DayAvailabilityMap(
            key=None, year=self._day_map.year, month=self._day_map.month
        )
        self._slot_map = TimeSlotMap(key=None, day=None)

    def clear_slots(self) -> None:
        self._supersede(ResolutionMode.SLOTS)
        self._slot_map = TimeSlotMap(key=None, day=None)

    async def _run(self, mode: ResolutionMode, generation: int, coro) -> Tuple[bool, object]:
        """
        Run a batch as the mode's in-flight task.

        Returns:
            (current, result) - current is False when the batch was superseded
        """
        task = asyncio.ensure_future(coro)
        self._tasks[mode] = task
        try:
            result = await task
        except asyncio.CancelledError:
            if task.cancelled() and generation != self._generations[mode]:
                return False, None
            raise
        finally:
            if self._tasks[mode] is task:
                self._tasks[mode] = None
        return generation == self._generations[mode], result

    async def _probe(self, query: AvailabilityQuery, day: date) -> List[SlotOption]:
        """One probe; every failure reads as 'no slots'."""
        try:
            return await self._source.get_available_times(
                query.clinic_id,
                query.doctor_id,
                day,
                query.primary_service_id,
                query.additional_service_ids,
            )
        except PROBE_ERRORS as e:
            logger.debug(f"Probe for {format_date(day)} treated as unavailable: {e}")
            return []

    async def _probe_month(
        self, query: AvailabilityQuery, year: int, month: int
    ) -> Dict[int, bool]:
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def probe_day(day: int) -> Tuple[int, bool]:
            async with semaphore:
                slots = await self._probe(query, date(year, month, day))
            return day, bool(slots)

        results = await asyncio.gather(
            *(probe_day(day) for day in self.candidate_days(year, month))
        )
        # Merged by day number, not by completion order
        return dict(results)

    async def resolve_days(
        self, query: AvailabilityQuery, year: int, month: int, force: bool = False
    ) -> Optional[DayAvailabilityMap]:
        """
        Resolve day-level availability for a displayed month.

        Args:
            query: Clinic, doctor and services from the draft
            year: Displayed year
            month: Displayed month (1-12)
            force: Re-probe even if a complete map for the same key exists

        Returns:
            The published map, or None if a newer resolution superseded this one
        """
        if not force and self._day_map.complete and self._day_map.matches(query.key, year, month):
            return self._day_map

        generation = self._supersede(ResolutionMode.DAYS)
        self._day_map = DayAvailabilityMap(key=query.key, year=year, month=month)

        if not query.can_resolve:
            # No doctor chosen (or nothing to book): every day stays unavailable
            return self._day_map

        logger.debug(f"Resolving days of {year}-{month:02d} for {query.key}")
        current, days = await self._run(
            ResolutionMode.DAYS, generation, self._probe_month(query, year, month)
        )
        if not current:
            logger.debug(f"Discarded stale day availability for {year}-{month:02d}")
            return None

        self._day_map = DayAvailabilityMap(
            key=query.key, year=year, month=month, days=dict(days), complete=True
        )
        logger.info(
            f"Day availability {year}-{month:02d}: "
            f"{len(self._day_map.available_days())}/{len(self._day_map.days)} days open"
        )
        return self._day_map

    async def resolve_slots(self, query: AvailabilityQuery, day: date) -> Optional[TimeSlotMap]:
        """
        Resolve the free slots of one date.

        Args:
            query: Clinic, doctor and services from the draft
            day: Selected date

        Returns:
            The published map, or None if a newer resolution superseded this one
        """
        generation = self._supersede(ResolutionMode.SLOTS)
        self._slot_map = TimeSlotMap(key=query.key, day=day)

        if not query.can_resolve:
            return self._slot_map

        current, slots = await self._run(
            ResolutionMode.SLOTS, generation, self._probe(query, day)
        )
        if not current:
            logger.debug(f"Discarded stale slots for {format_date(day)}")
            return None

        self._slot_map = TimeSlotMap(key=query.key, day=day, slots=tuple(slots))
        return self._slot_map
