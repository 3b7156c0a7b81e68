"""
Tests for settings parsing.
"""
import pytest
from pydantic import ValidationError
from recycleconnect.core.config import Settings
from recycleconnect.models.listing import ReservationPolicy


def test_defaults():
    app_settings = Settings()
    assert app_settings.LISTING_RESERVATION_POLICY is ReservationPolicy.TRANSPORTER_ONLY
    assert app_settings.SINGLE_ACTIVE_TRANSACTION is True
    assert app_settings.PASSWORD_MIN_LENGTH == 8


def test_reservation_policy_is_normalised():
    app_settings = Settings(LISTING_RESERVATION_POLICY=" All_Parties ")
    assert app_settings.LISTING_RESERVATION_POLICY is ReservationPolicy.ALL_PARTIES


@pytest.mark.parametrize("value", ["bogus", "sometimes", ""])
def test_unknown_reservation_policy_is_rejected(value):
    with pytest.raises(ValidationError):
        Settings(LISTING_RESERVATION_POLICY=value)


def test_cors_origins_from_string():
    app_settings = Settings(CORS_ORIGINS="http://a.example, http://b.example,")
    assert app_settings.CORS_ORIGINS == ["http://a.example", "http://b.example"]
