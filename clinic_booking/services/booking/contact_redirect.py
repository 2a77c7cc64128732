"""Redirect to the external contact channel for services not bookable online."""

from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import quote

from loguru import logger

from ...core.exceptions import ClinicBookingError
from ..api.models import Service

WHATSAPP_BASE_URL = "https://wa.me"


class ContactSource(Protocol):
    async def get_whatsapp_number(self) -> Optional[str]:
        ...


@dataclass(frozen=True)
class ServiceSelection:
    """
    Outcome of choosing a service in the wizard.

    ``selected`` is the service's membership after the toggle. When the
    service must be booked out of band, ``redirect_url`` (or, lacking contact
    data, ``fallback_message``) is set and the draft is left untouched.
    """

    service_id: int
    selected: bool = False
    redirect_url: Optional[str] = None
    fallback_message: Optional[str] = None

    @property
    def redirected(self) -> bool:
        return self.redirect_url is not None or self.fallback_message is not None


class ContactRedirector:
    """Builds deep links to the clinic's messaging channel."""

    def __init__(self, source: ContactSource, message_template: str, fallback_message: str):
        self._source = source
        self._message_template = message_template
        self._fallback_message = fallback_message

    async def link_for(self, service: Service) -> ServiceSelection:
        """Deep link with a pre-filled message, or the fallback text."""
        try:
            number = await self._source.get_whatsapp_number()
        except ClinicBookingError as e:
            logger.warning(f"Contact data unavailable: {e}")
            number = None

        if not number:
            return ServiceSelection(service_id=service.id, fallback_message=self._fallback_message)

        message = self._message_template.format(service_name=service.name)
        url = f"{WHATSAPP_BASE_URL}/{number}?text={quote(message)}"
        logger.info(f"Service {service.id} redirected to contact channel")
        return ServiceSelection(service_id=service.id, redirect_url=url)
