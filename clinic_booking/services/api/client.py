"""Clinic API Client - Main client implementation."""

from typing import Dict, Optional

import aiohttp
from loguru import logger

from ...core.config.settings import BookingSettings, get_settings
from ...core.exceptions import AuthenticationError
from .availability import AvailabilityApi
from .bookings import BookingsApi
from .catalog import CatalogApi


class ClinicApiClient:
    """
    Async client for the clinic REST backend.

    Groups the endpoints into ``catalog``, ``availability`` and ``bookings``,
    all sharing one HTTP session.

    Example:
        async with ClinicApiClient(token=token) as client:
            clinics = await client.catalog.get_clinics()
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        settings: Optional[BookingSettings] = None,
    ):
        """
        Initialize clinic API client.

        Args:
            token: Bearer token for user endpoints (falls back to settings)
            base_url: API base URL (falls back to settings)
            settings: Settings instance (defaults to the global one)
        """
        self.settings = settings or get_settings()
        self.base_url = (base_url or self.settings.api_base_url).rstrip("/")
        if token is None and self.settings.api_token is not None:
            token = self.settings.api_token.get_secret_value()
        self._token = token
        self.timeout = self.settings.request_timeout

        self._http_session: Optional[aiohttp.ClientSession] = None

        self.catalog = CatalogApi(
            self.base_url,
            http_session_getter=lambda: self._session,
            auth_headers_getter=self._auth_headers,
            retry_attempts=self.settings.catalog_retry_attempts,
        )
        self.availability = AvailabilityApi(
            self.base_url,
            http_session_getter=lambda: self._session,
            auth_headers_getter=self._auth_headers,
        )
        self.bookings = BookingsApi(
            self.base_url,
            http_session_getter=lambda: self._session,
            auth_headers_getter=self._auth_headers,
        )

        logger.info(f"ClinicApiClient initialized for {self.base_url}")

    async def __aenter__(self):
        """Async context manager entry."""
        await self._init_http_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _init_http_session(self) -> None:
        """Initialize HTTP session."""
        if self._http_session is None:
            headers = {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
            connector = aiohttp.TCPConnector(limit=50, limit_per_host=20, ttl_dns_cache=120)
            timeout = aiohttp.ClientTimeout(total=self.timeout, connect=10)
            self._http_session = aiohttp.ClientSession(
                connector=connector, headers=headers, timeout=timeout
            )
            logger.info("HTTP session initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._http_session:
            await self._http_session.close()
            self._http_session = None

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session, raising error if not initialized."""
        if self._http_session is None:
            raise RuntimeError("HTTP session not initialized. Use 'async with ClinicApiClient()'.")
        return self._http_session

    @property
    def token(self) -> Optional[str]:
        return self._token

    @token.setter
    def token(self, value: Optional[str]) -> None:
        self._token = value

    def _auth_headers(self) -> Dict[str, str]:
        """Authorization header for user endpoints."""
        if not self._token:
            raise AuthenticationError("No bearer token configured for user endpoints")
        return {"Authorization": f"Bearer {self._token}"}
