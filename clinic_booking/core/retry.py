"""Retry strategies for read-only catalog fetches."""

import logging

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from .exceptions import NetworkError

logger = logging.getLogger(__name__)


def get_catalog_retry(attempts: int = 3):
    """
    Get retry strategy for catalog reads (clinics, rosters, addresses).

    Availability probes, booking creation and OTP exchange are never wrapped
    with this: they either degrade to local state or surface the failure.

    Args:
        attempts: Maximum number of attempts including the first one

    Returns:
        Retry decorator configured for network errors
    """
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5) + wait_random(0, 0.5),
        retry=retry_if_exception_type(NetworkError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
