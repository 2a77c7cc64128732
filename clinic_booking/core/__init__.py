"""Core infrastructure module."""

from .config.settings import BookingSettings, get_settings, reset_settings
from .enums import BookingStatus, ResolutionMode, WizardStep
from .exceptions import (
    # Base exception
    ClinicBookingError,
    # Validation
    ValidationError,
    IncompatibleSelectionError,
    WizardTransitionError,
    # Transport / API
    NetworkError,
    ApiError,
    ApiValidationError,
    AuthenticationError,
    RateLimitError,
    # Domain
    CatalogError,
    BookingError,
    OTPVerificationError,
)
from .logger import correlation_id_ctx, setup_logging
from .retry import get_catalog_retry

__all__ = [
    "BookingSettings",
    "get_settings",
    "reset_settings",
    "BookingStatus",
    "ResolutionMode",
    "WizardStep",
    "ClinicBookingError",
    "ValidationError",
    "IncompatibleSelectionError",
    "WizardTransitionError",
    "NetworkError",
    "ApiError",
    "ApiValidationError",
    "AuthenticationError",
    "RateLimitError",
    "CatalogError",
    "BookingError",
    "OTPVerificationError",
    "correlation_id_ctx",
    "setup_logging",
    "get_catalog_retry",
]
