"""Tests for day-level and slot-level availability resolution."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from clinic_booking.core.exceptions import ApiError, ApiValidationError, NetworkError
from clinic_booking.services.api.models import SlotOption
from clinic_booking.services.booking.availability_resolver import (
    AvailabilityQuery,
    AvailabilityResolver,
    DayAvailabilityMap,
)

from conftest import TODAY, slot_source

QUERY = AvailabilityQuery(clinic_id=5, doctor_id=3, service_ids=(13, 14))


@pytest.fixture
def resolver_factory():
    def factory(source, max_concurrency=10):
        return AvailabilityResolver(source, max_concurrency=max_concurrency, today=lambda: TODAY)

    return factory


class TestAvailabilityQuery:
    """Test query identity and parameter split."""

    def test_key_ignores_service_order(self):
        a = AvailabilityQuery(5, 3, (14, 13))
        b = AvailabilityQuery(5, 3, (13, 14))
        assert a.key == b.key == (5, 3, (13, 14))

    def test_primary_and_additional_keep_selection_order(self):
        query = AvailabilityQuery(5, 3, (14, 13, 11))
        assert query.primary_service_id == 14
        assert query.additional_service_ids == (13, 11)

    def test_can_resolve_requires_doctor_and_services(self):
        assert AvailabilityQuery(5, None, (13,)).can_resolve is False
        assert AvailabilityQuery(5, 3, ()).can_resolve is False
        assert QUERY.can_resolve is True


class TestDayAvailabilityMap:
    def test_unresolved_days_are_unavailable(self):
        day_map = DayAvailabilityMap(key=QUERY.key, year=2025, month=3, days={10: True, 11: False})
        assert day_map.is_available(10) is True
        assert day_map.is_available(11) is False
        assert day_map.is_available(12) is False
        assert day_map.is_resolved(12) is False


class TestCandidateDays:
    def test_current_month_starts_today(self, resolver_factory):
        resolver = AvailabilityResolver(
            slot_source(), today=lambda: date(2025, 3, 20)
        )
        assert resolver.candidate_days(2025, 3) == list(range(20, 32))

    def test_other_month_starts_on_first(self, resolver_factory):
        resolver = resolver_factory(slot_source())
        assert resolver.candidate_days(2025, 4) == list(range(1, 31))

    def test_leap_february(self, resolver_factory):
        resolver = resolver_factory(slot_source())
        assert resolver.candidate_days(2028, 2)[-1] == 29


class TestResolveDays:
    """Test month view resolution."""

    @pytest.mark.asyncio
    async def test_available_day_and_rejected_day(self, resolver_factory):
        """Test day 10 with slots is open and day 11 answered with 422 is not."""

        async def get_available_times(clinic_id, staff_id, day, service_id, additional_service_ids=()):
            if day.day == 10:
                return [SlotOption("09:30", "slot-1")]
            if day.day == 11:
                raise ApiValidationError("The date is out of range")
            return []

        source = MagicMock()
        source.get_available_times = AsyncMock(side_effect=get_available_times)
        resolver = resolver_factory(source)

        day_map = await resolver.resolve_days(QUERY, 2025, 3)

        assert day_map.complete is True
        assert resolver.is_day_available(10) is True
        assert resolver.is_day_available(11) is False
        assert day_map.is_resolved(11) is True
        assert day_map.available_days() == [10]
        assert source.get_available_times.call_count == 31

    @pytest.mark.asyncio
    async def test_probe_arguments_split_primary_and_additional(self, resolver_factory):
        source = slot_source()
        resolver = resolver_factory(source)

        await resolver.resolve_days(QUERY, 2025, 4)

        args = source.get_available_times.call_args_list[0].args
        assert args == (5, 3, date(2025, 4, 1), 13, (14,))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [NetworkError("down"), ApiError("boom", status=500), asyncio.TimeoutError()]
    )
    async def test_any_probe_failure_reads_unavailable(self, resolver_factory, error):
        source = MagicMock()
        source.get_available_times = AsyncMock(side_effect=error)
        resolver = resolver_factory(source)

        day_map = await resolver.resolve_days(QUERY, 2025, 3)

        assert day_map.available_days() == []
        assert day_map.complete is True

    @pytest.mark.asyncio
    async def test_without_doctor_nothing_is_probed(self, resolver_factory):
        source = slot_source(available_days=range(1, 32))
        resolver = resolver_factory(source)

        day_map = await resolver.resolve_days(AvailabilityQuery(5, None, (13,)), 2025, 3)

        assert day_map.days == {}
        source.get_available_times.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_map_is_reused(self, resolver_factory):
        source = slot_source(available_days={5})
        resolver = resolver_factory(source)

        first = await resolver.resolve_days(QUERY, 2025, 3)
        second = await resolver.resolve_days(QUERY, 2025, 3)

        assert first is second
        assert source.get_available_times.call_count == 31

    @pytest.mark.asyncio
    async def test_force_re_probes(self, resolver_factory):
        source = slot_source(available_days={5})
        resolver = resolver_factory(source)

        await resolver.resolve_days(QUERY, 2025, 3)
        await resolver.resolve_days(QUERY, 2025, 3, force=True)

        assert source.get_available_times.call_count == 62

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, resolver_factory):
        in_flight = 0
        peak = 0

        async def get_available_times(*args, **kwargs):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return []

        source = MagicMock()
        source.get_available_times = AsyncMock(side_effect=get_available_times)
        resolver = resolver_factory(source, max_concurrency=3)

        await resolver.resolve_days(QUERY, 2025, 4)

        assert peak <= 3

    @pytest.mark.asyncio
    async def test_pending_resolution_publishes_empty_map(self, resolver_factory):
        gate = asyncio.Event()

        async def get_available_times(*args, **kwargs):
            await gate.wait()
            return [SlotOption("09:30", "slot-1")]

        source = MagicMock()
        source.get_available_times = AsyncMock(side_effect=get_available_times)
        resolver = resolver_factory(source)

        task = asyncio.create_task(resolver.resolve_days(QUERY, 2025, 3))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert resolver.day_map.days == {}
        assert resolver.is_day_available(10) is False

        gate.set()
        day_map = await task
        assert day_map.is_available(10) is True

    @pytest.mark.asyncio
    async def test_superseded_resolution_is_discarded(self, resolver_factory):
        """Test a slow batch for the old doctor never overwrites the new doctor's map."""
        gate = asyncio.Event()

        async def get_available_times(clinic_id, staff_id, day, service_id, additional_service_ids=()):
            if staff_id == 1:
                await gate.wait()
                return [SlotOption("08:00", "old")]
            return [SlotOption("10:00", "new")] if day.day == 20 else []

        source = MagicMock()
        source.get_available_times = AsyncMock(side_effect=get_available_times)
        resolver = resolver_factory(source)

        old_query = AvailabilityQuery(5, 1, (11,))
        new_query = AvailabilityQuery(5, 2, (11,))

        stale = asyncio.create_task(resolver.resolve_days(old_query, 2025, 3))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        fresh = await resolver.resolve_days(new_query, 2025, 3)
        gate.set()

        assert await stale is None
        assert resolver.day_map is fresh
        assert resolver.day_map.key == new_query.key
        assert resolver.day_map.available_days() == [20]

    @pytest.mark.asyncio
    async def test_clear_drops_map(self, resolver_factory):
        resolver = resolver_factory(slot_source(available_days={3}))
        await resolver.resolve_days(QUERY, 2025, 3)

        resolver.clear()

        assert resolver.day_map.days == {}
        assert resolver.day_map.key is None


class TestResolveSlots:
    """Test day view resolution."""

    @pytest.mark.asyncio
    async def test_slots_for_date(self, resolver_factory):
        slots = [SlotOption("09:30", "slot-0930"), SlotOption("10:00", "slot-1000")]
        resolver = resolver_factory(slot_source(available_days={15}, slots=slots))

        slot_map = await resolver.resolve_slots(QUERY, date(2025, 3, 15))

        assert slot_map.labels == ["09:30", "10:00"]
        assert slot_map.value_for("10:00") == "slot-1000"
        assert slot_map.value_for("11:00") is None
        assert len(slot_map) == 2

    @pytest.mark.asyncio
    async def test_failure_yields_no_slots(self, resolver_factory):
        source = MagicMock()
        source.get_available_times = AsyncMock(side_effect=NetworkError("down"))
        resolver = resolver_factory(source)

        slot_map = await resolver.resolve_slots(QUERY, date(2025, 3, 15))

        assert len(slot_map) == 0

    @pytest.mark.asyncio
    async def test_superseded_slots_are_discarded(self, resolver_factory):
        gate = asyncio.Event()

        async def get_available_times(clinic_id, staff_id, day, service_id, additional_service_ids=()):
            if day.day == 14:
                await gate.wait()
            return [SlotOption(f"{day.day}:00", f"tok-{day.day}")]

        source = MagicMock()
        source.get_available_times = AsyncMock(side_effect=get_available_times)
        resolver = resolver_factory(source)

        stale = asyncio.create_task(resolver.resolve_slots(QUERY, date(2025, 3, 14)))
        await asyncio.sleep(0)
        fresh = await resolver.resolve_slots(QUERY, date(2025, 3, 15))
        gate.set()

        assert await stale is None
        assert resolver.slot_map is fresh
        assert resolver.slot_map.labels == ["15:00"]
