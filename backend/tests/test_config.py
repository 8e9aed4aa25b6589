"""
Unit tests for the application settings validators.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from stairledger.core.config import Settings


class TestSettings:
    """Tests for Settings parsing and validation."""

    def test_decimal_with_comma(self):
        settings = Settings(_env_file=None, cis_default_rate="0,3", vat_rate="17,5")
        assert settings.cis_default_rate == Decimal("0.3")
        assert settings.vat_rate == Decimal("17.5")

    def test_cis_rate_is_a_fraction(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, cis_default_rate="20")

    def test_vat_rate_range(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, vat_rate="120")

    def test_utr_spaces_removed(self):
        settings = Settings(_env_file=None, cis_utr="12345 67890")
        assert settings.cis_utr == "1234567890"

    def test_invalid_utr(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, cis_utr="12345")

    def test_production_rejects_development_defaults(self):
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, app_env="production", debug=True)
        message = str(exc_info.value)
        assert "database_url" in message
        assert "debug" in message

    def test_production_accepts_real_settings(self):
        settings = Settings(
            _env_file=None,
            app_env="production",
            database_url="postgresql+asyncpg://stairs:s3cret@db:5432/stairledger",
            cors_origins=["https://stairs.example.co.uk"],
            cis_utr="1234567890",
        )
        assert settings.is_production

    def test_environment_flags(self):
        development = Settings(_env_file=None)
        testing = Settings(_env_file=None, app_env="testing")
        assert development.is_development and not development.is_production
        assert not testing.is_development and not testing.is_production
