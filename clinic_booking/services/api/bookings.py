"""Booking endpoints - create, list, delete and complete bookings."""

from typing import Any, List

from loguru import logger

from ...core.exceptions import BookingError
from .base import ApiEndpoint, as_list, unwrap
from .models import BookingPayload, BookingRecord


class BookingsApi(ApiEndpoint):
    """Authenticated booking operations of the current user."""

    async def create_booking(self, payload: BookingPayload) -> Any:
        """
        Create one booking.

        Args:
            payload: Booking body (one service per booking)

        Returns:
            Backend-assigned booking id

        Raises:
            BookingError: Success response without a booking id
            ApiError: Backend rejected the booking
            NetworkError: Transport failure
        """
        data = await self._request("POST", "/user/bookings", json=dict(payload), auth=True)

        body = unwrap(data)
        booking_id = body.get("id") if isinstance(body, dict) else None
        if booking_id is None and isinstance(data, dict):
            booking_id = data.get("booking_id")
        if booking_id is None:
            raise BookingError(
                "Booking id missing from response", details={"service_id": payload.get("service_id")}
            )

        logger.info(
            f"Booking {booking_id} created for service {payload.get('service_id')} "
            f"on {payload.get('date')} {payload.get('time')}"
        )
        return booking_id

    async def list_bookings(self) -> List[BookingRecord]:
        """Get the user's bookings."""
        data = unwrap(await self._request("GET", "/user/bookings", auth=True))
        return [BookingRecord.from_api(item) for item in as_list(data, "bookings")]

    async def delete_booking(self, booking_id: Any) -> None:
        """Delete one booking."""
        await self._request("DELETE", f"/user/bookings/{booking_id}", auth=True)
        logger.info(f"Booking {booking_id} deleted")

    async def complete_booking(self, booking_id: Any, code: str) -> None:
        """
        Exchange a completion code for confirming a booking.

        Raises:
            ApiError: Code rejected; the message is the backend's verbatim
            NetworkError: Transport failure
        """
        await self._request(
            "POST",
            "/user/bookings/complete-book",
            json={"booking_id": booking_id, "completion_otp": code},
            auth=True,
        )
        logger.info(f"Booking {booking_id} completed")
