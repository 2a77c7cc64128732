"""Application settings with Pydantic validation."""

from typing import Any, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BookingSettings(BaseSettings):
    """Booking engine settings with validation and environment variable support."""

    # Clinic API
    api_base_url: str = Field(
        default="https://ghaimcenter.com/laravel/api",
        description="Base URL of the clinic REST backend",
    )
    api_token: Optional[SecretStr] = Field(
        default=None, description="Bearer token supplied by the host application"
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="Total timeout per HTTP request in seconds"
    )

    # Availability resolution
    probe_concurrency: int = Field(
        default=10,
        ge=1,
        le=31,
        description="Maximum number of per-day availability probes in flight at once",
    )

    # Catalog reads
    catalog_retry_attempts: int = Field(
        default=3, ge=1, le=10, description="Attempts for read-only catalog requests"
    )

    # Display fallbacks
    default_doctor_name: str = Field(
        default="الطبيب", description="Doctor name shown when neither staff nor owner is known"
    )
    contact_message_template: str = Field(
        default="مرحباً، أريد حجز موعد لخدمة: {service_name}",
        description="Pre-filled message for services booked through the contact channel",
    )
    contact_fallback_message: str = Field(
        default="يرجى التواصل معنا عبر الهاتف لحجز هذه الخدمة",
        description="Shown when contact channel data is unavailable",
    )
    connection_error_message: str = Field(
        default="حدث خطأ في الاتصال. يرجى المحاولة مرة أخرى.",
        description="Shown when a booking request never reached the backend",
    )

    # OTP completion
    otp_max_attempts: Optional[int] = Field(
        default=None,
        ge=1,
        description="Optional cap on completion-code attempts per booking (unlimited if unset)",
    )

    # Environment
    env: str = Field(
        default="production", description="Environment (production, development, testing)"
    )

    @model_validator(mode="before")
    @classmethod
    def default_env_for_pytest(cls, data: Any) -> Any:
        """Auto-detect testing environment when running under pytest."""
        import sys

        if not isinstance(data, dict):
            return data

        if ("env" not in data or not data.get("env")) and "pytest" in sys.modules:
            data["env"] = "testing"

        return data

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=False, description="Serialize log records as JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API_BASE_URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("contact_message_template")
    @classmethod
    def validate_contact_template(cls, v: str) -> str:
        """Template must reference the service name."""
        if "{service_name}" not in v:
            raise ValueError("CONTACT_MESSAGE_TEMPLATE must contain '{service_name}'")
        return v

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["production", "development", "testing", "staging"]
        if v.lower() not in allowed:
            raise ValueError(f'ENV must be one of: {", ".join(allowed)}')
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.env == "development"


# Singleton instance
_settings: Optional[BookingSettings] = None


def get_settings() -> BookingSettings:
    """
    Get application settings singleton.

    Returns:
        BookingSettings instance

    Raises:
        pydantic.ValidationError: If settings are invalid
    """
    global _settings
    if _settings is None:
        _settings = BookingSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
