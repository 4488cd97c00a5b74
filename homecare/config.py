"""
Centralized configuration with environment variable overrides.

Office location, proximity thresholds, catalog caching and tax settings
are configurable here. Pricing policy values that administrators edit at
runtime live in the policy store instead (see homecare.pricing.policy).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from homecare.logging_context import build_log_handler

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class OfficeConfig:
    """Central office reference point used for service-radius checks."""

    lat: float = _safe_float("OFFICE_LAT", "43.6426")
    lng: float = _safe_float("OFFICE_LNG", "-79.3871")
    postal_code: str = os.getenv("OFFICE_POSTAL_CODE", "M5V 3L9")
    address: str = os.getenv("OFFICE_ADDRESS", "Toronto, ON")
    service_radius_km: float = _safe_float("SERVICE_RADIUS_KM", "75")


@dataclass(frozen=True)
class CheckInConfig:
    """GPS check-in proximity thresholds."""

    client_threshold_meters: float = _safe_float("CHECKIN_CLIENT_METERS", "200")
    transport_threshold_meters: float = _safe_float("CHECKIN_TRANSPORT_METERS", "500")
    location_timeout_sec: float = _safe_float("CHECKIN_LOCATION_TIMEOUT", "10.0")


@dataclass(frozen=True)
class CatalogConfig:
    """Task catalog caching and fallback settings."""

    cache_ttl_seconds: int = _safe_int("TASK_CACHE_TTL_SECONDS", "300")
    fallback_hourly_rate: float = _safe_float("FALLBACK_HOURLY_RATE", "35")


@dataclass(frozen=True)
class PricingConfig:
    """Deployment-level pricing constants."""

    hst_rate: float = _safe_float("HST_RATE", "0.13")
    asap_multiplier: float = _safe_float("ASAP_MULTIPLIER", "1.25")
    cancellation_threshold_hours: float = _safe_float("CANCELLATION_THRESHOLD_HOURS", "4")


@dataclass(frozen=True)
class StoreConfig:
    """Location of the local key-value store holding admin overrides."""

    json_store_path: Optional[str] = os.getenv("HOMECARE_STORE_PATH") or None


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    office: OfficeConfig = field(default_factory=OfficeConfig)
    checkin: CheckInConfig = field(default_factory=CheckInConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "homecare-pricing")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not -90.0 <= config.office.lat <= 90.0:
        raise ValueError(f"OFFICE_LAT must be between -90 and 90, got {config.office.lat}")
    if not -180.0 <= config.office.lng <= 180.0:
        raise ValueError(f"OFFICE_LNG must be between -180 and 180, got {config.office.lng}")
    if config.office.service_radius_km <= 0:
        raise ValueError(
            f"SERVICE_RADIUS_KM must be > 0, got {config.office.service_radius_km}"
        )

    for name, value in [
        ("CHECKIN_CLIENT_METERS", config.checkin.client_threshold_meters),
        ("CHECKIN_TRANSPORT_METERS", config.checkin.transport_threshold_meters),
        ("CHECKIN_LOCATION_TIMEOUT", config.checkin.location_timeout_sec),
    ]:
        if value <= 0:
            raise ValueError(f"{name} must be > 0, got {value}")

    if config.catalog.cache_ttl_seconds < 0:
        raise ValueError(
            f"TASK_CACHE_TTL_SECONDS must be >= 0, got {config.catalog.cache_ttl_seconds}"
        )
    if config.catalog.fallback_hourly_rate < 0:
        raise ValueError(
            f"FALLBACK_HOURLY_RATE must be >= 0, got {config.catalog.fallback_hourly_rate}"
        )
    if not 0.0 <= config.pricing.hst_rate <= 1.0:
        raise ValueError(f"HST_RATE must be between 0.0 and 1.0, got {config.pricing.hst_rate}")
    if config.pricing.asap_multiplier < 1.0:
        raise ValueError(
            f"ASAP_MULTIPLIER must be >= 1.0, got {config.pricing.asap_multiplier}"
        )
    if config.pricing.cancellation_threshold_hours < 0:
        raise ValueError(
            "CANCELLATION_THRESHOLD_HOURS must be >= 0, "
            f"got {config.pricing.cancellation_threshold_hours}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[build_log_handler()],
    )
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
