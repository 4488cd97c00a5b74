"""Tests for configuration loading and validation."""

from dataclasses import replace

import pytest

from homecare.config import (
    AppConfig,
    CatalogConfig,
    CheckInConfig,
    OfficeConfig,
    PricingConfig,
    _validate_config,
)


class TestConfigValidation:
    def test_default_config_passes_validation(self):
        config = AppConfig()
        _validate_config(config)  # should not raise

    def test_default_office_is_toronto(self):
        office = OfficeConfig()
        assert office.lat == pytest.approx(43.6426)
        assert office.lng == pytest.approx(-79.3871)

    def test_invalid_office_latitude(self):
        config = AppConfig(office=replace(OfficeConfig(), lat=123.0))
        with pytest.raises(ValueError, match="OFFICE_LAT"):
            _validate_config(config)

    def test_invalid_service_radius(self):
        config = AppConfig(office=replace(OfficeConfig(), service_radius_km=0))
        with pytest.raises(ValueError, match="SERVICE_RADIUS_KM"):
            _validate_config(config)

    def test_invalid_check_in_threshold(self):
        config = AppConfig(checkin=replace(CheckInConfig(), client_threshold_meters=-1))
        with pytest.raises(ValueError, match="CHECKIN_CLIENT_METERS"):
            _validate_config(config)

    def test_invalid_cache_ttl(self):
        config = AppConfig(catalog=replace(CatalogConfig(), cache_ttl_seconds=-5))
        with pytest.raises(ValueError, match="TASK_CACHE_TTL_SECONDS"):
            _validate_config(config)

    def test_invalid_hst_rate_above_one(self):
        config = AppConfig(pricing=replace(PricingConfig(), hst_rate=1.3))
        with pytest.raises(ValueError, match="HST_RATE"):
            _validate_config(config)

    def test_invalid_asap_multiplier_below_one(self):
        config = AppConfig(pricing=replace(PricingConfig(), asap_multiplier=0.9))
        with pytest.raises(ValueError, match="ASAP_MULTIPLIER"):
            _validate_config(config)

    def test_safe_int_parsing(self):
        from homecare.config import _safe_int

        assert _safe_int("NONEXISTENT_VAR_12345", "42") == 42

    def test_safe_float_parsing(self):
        from homecare.config import _safe_float

        assert _safe_float("NONEXISTENT_VAR_12345", "3.14") == pytest.approx(3.14)

    def test_safe_float_rejects_garbage(self, monkeypatch):
        from homecare.config import _safe_float

        monkeypatch.setenv("HOMECARE_TEST_FLOAT", "abc")
        with pytest.raises(ValueError, match="HOMECARE_TEST_FLOAT"):
            _safe_float("HOMECARE_TEST_FLOAT", "1.0")
