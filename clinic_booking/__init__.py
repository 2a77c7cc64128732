"""Clinic booking engine - availability resolution and multi-service booking."""

import importlib as _importlib
from typing import TYPE_CHECKING, Any

__version__ = "1.0.0"
__license__ = "MIT"

if TYPE_CHECKING:
    from .core.config.settings import get_settings as get_settings
    from .core.logger import setup_logging as setup_logging
    from .services.api.client import ClinicApiClient as ClinicApiClient
    from .services.booking.history import BookingHistory as BookingHistory
    from .services.booking.otp_verifier import CompletionVerifier as CompletionVerifier
    from .services.booking.preselection import BookingPreselection as BookingPreselection
    from .services.booking.wizard import BookingWizard as BookingWizard

# Explicit lazy-loading map: name -> (module_path, attribute_name)
_LAZY_MODULE_MAP = {
    # Core
    "get_settings": ("clinic_booking.core.config.settings", "get_settings"),
    "setup_logging": ("clinic_booking.core.logger", "setup_logging"),
    # API
    "ClinicApiClient": ("clinic_booking.services.api.client", "ClinicApiClient"),
    # Booking
    "BookingWizard": ("clinic_booking.services.booking.wizard", "BookingWizard"),
    "BookingHistory": ("clinic_booking.services.booking.history", "BookingHistory"),
    "BookingPreselection": ("clinic_booking.services.booking.preselection", "BookingPreselection"),
    "CompletionVerifier": ("clinic_booking.services.booking.otp_verifier", "CompletionVerifier"),
}

__all__ = list(_LAZY_MODULE_MAP.keys()) + ["__version__"]


def __getattr__(name: str) -> Any:
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
