"""Completion-code verification of a pending booking."""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Protocol

import aiohttp
from loguru import logger

from ...core.config.settings import BookingSettings, get_settings
from ...core.enums import BookingStatus
from ...core.exceptions import ClinicBookingError, NetworkError, OTPVerificationError, ValidationError
from ..api.models import BookingRecord


class CompletionSink(Protocol):
    """What the verifier needs from the API layer."""

    async def complete_booking(self, booking_id: Any, code: str) -> None:
        ...


class CompletionVerifier:
    """
    Two-state machine for one booking: PENDING_VERIFICATION -> CONFIRMED.

    Example:
        verifier = CompletionVerifier(api.bookings, booking, on_confirmed=history.refresh)
        if not await verifier.verify(code):
            show(verifier.last_error)
    """

    def __init__(
        self,
        sink: CompletionSink,
        booking: BookingRecord,
        on_confirmed: Optional[Callable[[], Awaitable[Any]]] = None,
        max_attempts: Optional[int] = None,
        connection_error_message: str = "Connection error, please try again",
    ):
        """
        Initialize verifier.

        Args:
            sink: API endpoint that exchanges the code
            booking: Booking awaiting its completion code
            on_confirmed: Awaited after a successful exchange (booking list refresh)
            max_attempts: Optional cap on remote attempts; unlimited when None
            connection_error_message: Message when the backend was not reached
        """
        self._sink = sink
        self.booking = booking
        self._on_confirmed = on_confirmed
        self._max_attempts = max_attempts
        self._connection_error_message = connection_error_message
        self.attempts = 0
        self.last_error: Optional[str] = None

    @classmethod
    def create(
        cls,
        sink: CompletionSink,
        booking: BookingRecord,
        on_confirmed: Optional[Callable[[], Awaitable[Any]]] = None,
        settings: Optional[BookingSettings] = None,
    ) -> "CompletionVerifier":
        """Verifier using the configured attempt cap and connection message."""
        settings = settings or get_settings()
        return cls(
            sink,
            booking,
            on_confirmed=on_confirmed,
            max_attempts=settings.otp_max_attempts,
            connection_error_message=settings.connection_error_message,
        )

    @property
    def state(self) -> BookingStatus:
        return self.booking.status

    @property
    def is_confirmed(self) -> bool:
        return self.booking.status == BookingStatus.CONFIRMED

    @property
    def attempts_exhausted(self) -> bool:
        return self._max_attempts is not None and self.attempts >= self._max_attempts

    async def verify(self, code: str) -> bool:
        """
        Submit a completion code.

        Args:
            code: Code as typed; only surrounding whitespace is removed

        Returns:
            True if the booking is confirmed, False if the exchange failed

        Raises:
            ValidationError: Empty code (nothing is sent)
            OTPVerificationError: Attempt cap reached (nothing is sent)
        """
        if self.is_confirmed:
            return True

        code = (code or "").strip()
        if not code:
            raise ValidationError("Completion code is required", field="code")
        if self.attempts_exhausted:
            raise OTPVerificationError(
                f"No attempts left for booking {self.booking.id}", booking_id=self.booking.id
            )

        self.attempts += 1
        try:
            await self._sink.complete_booking(self.booking.id, code)
        except (ClinicBookingError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            if isinstance(e, ClinicBookingError) and not isinstance(e, NetworkError):
                self.last_error = e.message
            else:
                self.last_error = self._connection_error_message
            logger.warning(f"Completion code rejected for booking {self.booking.id}: {e}")
            return False

        self.booking.status = BookingStatus.CONFIRMED
        self.last_error = None
        logger.info(f"Booking {self.booking.id} confirmed")

        if self._on_confirmed is not None:
            try:
                await self._on_confirmed()
            except ClinicBookingError as e:
                logger.warning(f"Booking list refresh after confirmation failed: {e}")
        return True
