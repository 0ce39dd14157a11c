"""
Configuration management for the availability updater.

Supports configuration via environment variables and .env files.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_API_URL = "https://myfigurecollection.net/papi.php?mode=set-availability"


class AvailabilityConfig(BaseSettings):
    """
    Configuration settings for the availability updater.

    All settings can be configured via environment variables with the MFC_ prefix
    (MFC_PUBLIC_KEY, MFC_PRIVATE_KEY, ...).
    """

    model_config = SettingsConfigDict(
        env_prefix="MFC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # API credentials
    public_key: Optional[str] = Field(
        default=None,
        description="Public API key sent with every request"
    )
    private_key: Optional[str] = Field(
        default=None,
        description="Private key used to sign requests (never sent or logged)"
    )

    # Vendor endpoint
    api_url: str = Field(
        default=DEFAULT_API_URL,
        description="Availability update endpoint"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single item update request"
    )

    # Log store settings
    log_file_path: str = Field(
        default="logs/availability.log",
        description="Append-only audit log file"
    )
    log_read_limit: int = Field(
        default=100,
        ge=1,
        description="Default number of entries returned when reading logs"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def has_credentials(self) -> bool:
        """Check whether both signing keys are configured."""
        return bool(self.public_key) and bool(self.private_key)


# Global config instance
_config: Optional[AvailabilityConfig] = None


def get_config() -> AvailabilityConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = AvailabilityConfig()
    return _config


def set_config(config: AvailabilityConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
