"""Business logic services module."""

import importlib as _importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .api.client import ClinicApiClient as ClinicApiClient
    from .booking.history import BookingHistory as BookingHistory
    from .booking.otp_verifier import CompletionVerifier as CompletionVerifier
    from .booking.wizard import BookingWizard as BookingWizard

_LAZY_MODULE_MAP = {
    "ClinicApiClient": ("clinic_booking.services.api.client", "ClinicApiClient"),
    "BookingHistory": ("clinic_booking.services.booking.history", "BookingHistory"),
    "CompletionVerifier": ("clinic_booking.services.booking.otp_verifier", "CompletionVerifier"),
    "BookingWizard": ("clinic_booking.services.booking.wizard", "BookingWizard"),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str):
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
