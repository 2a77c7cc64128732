"""Pytest configuration and common fixtures."""

import os
import sys
import warnings
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

# Set environment variables BEFORE any clinic_booking imports so the settings
# singleton never picks up a developer's real backend
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("API_BASE_URL", "https://clinic.test/api")

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from clinic_booking.core.config.settings import BookingSettings, reset_settings
from clinic_booking.services.api.client import ClinicApiClient
from clinic_booking.services.api.models import ClinicRoster, Service, SlotOption, Staff

# Fixed "today" so month views are deterministic
TODAY = date(2025, 3, 1)


def pytest_configure(config):
    """Configure pytest environment before tests run."""
    warnings.filterwarnings("ignore", message="coroutine.*was never awaited")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Automatically set up test environment for all tests."""
    monkeypatch.setenv("ENV", "testing")
    monkeypatch.setenv("API_BASE_URL", "https://clinic.test/api")
    monkeypatch.setenv("CATALOG_RETRY_ATTEMPTS", "1")
    monkeypatch.delenv("API_TOKEN", raising=False)
    monkeypatch.delenv("OTP_MAX_ATTEMPTS", raising=False)

    # Reset settings singleton so each test gets fresh settings
    reset_settings()
    yield
    reset_settings()


def make_response(
    status: int = 200, payload: Any = None, headers: Optional[Dict[str, str]] = None
) -> MagicMock:
    """Build a mock for ``async with session.request(...) as response``."""
    response = MagicMock()
    response.status = status
    response.headers = headers or {}
    response.json = AsyncMock(return_value=payload)
    response.text = AsyncMock(return_value="")

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


@pytest.fixture
def mock_session():
    """Mock aiohttp session; set ``request.return_value`` or ``side_effect`` per test."""
    session = MagicMock()
    session.request = MagicMock(return_value=make_response(payload={"status": "success"}))
    session.close = AsyncMock()
    return session


@pytest.fixture
def api_client(mock_session):
    """Clinic API client wired to the mock session."""
    client = ClinicApiClient(
        token="test-token",
        base_url="https://clinic.test/api",
        settings=BookingSettings(catalog_retry_attempts=1),
    )
    client._http_session = mock_session
    return client


@pytest.fixture
def roster() -> ClinicRoster:
    """
    Clinic 5 with a mixed roster.

    Service 11 is done by doctors 1 and 2, 12 has no staff, 13 and 14 are
    doctor 3's, 15 must be booked by phone. Doctor 4 performs nothing.
    """
    return ClinicRoster(
        clinic_id=5,
        name="Smile Clinic",
        owner_name="Dr. Owner",
        services=(
            Service(id=11, name="Cleaning", price=150.0, staff_ids=frozenset({1, 2})),
            Service(id=12, name="Whitening", price=400.0, staff_ids=frozenset()),
            Service(id=13, name="Braces", price=3000.0, staff_ids=frozenset({3})),
            Service(id=14, name="Implant", price=5000.0, staff_ids=frozenset({2, 3})),
            Service(id=15, name="Surgery", booking_cycle=2, staff_ids=frozenset({1})),
        ),
        staff=(
            Staff(id=1, name="Dr. Ahmad"),
            Staff(id=2, name="Dr. Sara"),
            Staff(id=3, name="Dr. Khaled"),
            Staff(id=4, name="Dr. Layla"),
        ),
    )


def slot_source(available_days=(), slots=None) -> MagicMock:
    """Availability source answering with slots on the given days of any month."""
    slots = slots or [SlotOption(label="09:30", value="slot-0930")]

    async def get_available_times(
        clinic_id, staff_id, day, service_id, additional_service_ids=()
    ):
        return list(slots) if day.day in available_days else []

    source = MagicMock()
    source.get_available_times = AsyncMock(side_effect=get_available_times)
    return source
