"""Shared request plumbing for the clinic API endpoint groups."""

import asyncio
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import aiohttp
from loguru import logger

from ...core.exceptions import (
    ApiError,
    ApiValidationError,
    AuthenticationError,
    NetworkError,
    RateLimitError,
)

Params = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]


def error_message(data: Any, default: str) -> str:
    """Pull the backend's user-facing message out of an error body."""
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message:
            return message
    return default


def check_response(status: int, data: Any, headers: Optional[Mapping[str, str]] = None) -> None:
    """
    Translate HTTP status and envelope into exceptions.

    Raises:
        AuthenticationError: 401/403
        ApiValidationError: 422
        RateLimitError: 429
        ApiError: any other non-2xx status or a non-success envelope
    """
    if status in (401, 403):
        raise AuthenticationError(error_message(data, "Authentication failed"), status=status)
    if status == 422:
        raise ApiValidationError(error_message(data, "Request rejected by the clinic API"))
    if status == 429:
        retry_after = None
        if headers and headers.get("Retry-After", "").isdigit():
            retry_after = int(headers["Retry-After"])
        raise RateLimitError(error_message(data, "Rate limit exceeded"), retry_after=retry_after)
    if status >= 400:
        raise ApiError(error_message(data, f"Clinic API returned status {status}"), status=status)
    if isinstance(data, dict) and data.get("status") not in (None, "success"):
        raise ApiError(error_message(data, "Clinic API reported failure"), status=status)


def unwrap(data: Any) -> Any:
    """Return the ``data`` member of a success envelope (or the body itself)."""
    if isinstance(data, dict) and "data" in data:
        return data["data"]
    return data


def as_list(data: Any, *keys: str) -> List[Dict[str, Any]]:
    """Find a list of objects in a payload that may be paginated or keyed."""
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    if isinstance(data, dict):
        for key in keys:
            if key in data:
                return as_list(data[key], *keys)
    return []


class ApiEndpoint:
    """Base for endpoint groups sharing the parent client's HTTP session."""

    def __init__(
        self,
        base_url: str,
        http_session_getter: Callable[[], aiohttp.ClientSession],
        auth_headers_getter: Callable[[], Dict[str, str]],
    ):
        """
        Initialize endpoint group.

        Args:
            base_url: API base URL without trailing slash
            http_session_getter: Callable that returns the HTTP session
            auth_headers_getter: Callable that returns the Authorization header
        """
        self._base_url = base_url
        self._http_session_getter = http_session_getter
        self._auth_headers_getter = auth_headers_getter

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get HTTP session from parent client."""
        return self._http_session_getter()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Params] = None,
        json: Optional[Dict[str, Any]] = None,
        auth: bool = False,
    ) -> Any:
        """
        Perform one request and return the decoded JSON body.

        Raises:
            NetworkError: Transport failure or timeout
            ApiError: Non-success response (see check_response)
        """
        url = f"{self._base_url}{path}"
        headers = self._auth_headers_getter() if auth else {}
        try:
            async with self._session.request(
                method, url, params=params, json=json, headers=headers
            ) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    # Maintenance pages and proxies answer with HTML
                    error_text = await response.text()
                    logger.error(
                        f"Unexpected non-JSON response from {path} "
                        f"(status={response.status}): {error_text[:200]}..."
                    )
                    raise ApiError(
                        f"Non-JSON response from clinic API: {response.status}",
                        status=response.status,
                    )
                check_response(response.status, data, response.headers)
                return data
        except aiohttp.ClientError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise NetworkError(f"{method} {path} timed out") from e
