from __future__ import annotations

import pytest

from booking_engine.core.config import settings
from booking_engine.domain.entities.travel import Coordinates
from booking_engine.infrastructure.geocoding.google_geocoder import GoogleGeocoder
from booking_engine.infrastructure.geocoding.static_geocoder import StaticGeocoder
from booking_engine.wiring.dependencies import get_geocoder


@pytest.fixture(autouse=True)
def fresh_geocoder():
    get_geocoder.cache_clear()
    yield
    get_geocoder.cache_clear()


def test_static_geocoder_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", None)
    monkeypatch.setattr(settings, "STATIC_GEOCODER_ADDRESSES", {"Main Studio": (37.7749, -122.4194)})

    geocoder = get_geocoder()

    assert isinstance(geocoder, StaticGeocoder)
    assert geocoder.geocode("main studio") == Coordinates(latitude=37.7749, longitude=-122.4194)
    assert geocoder.geocode("somewhere else") is None


def test_google_geocoder_with_api_key(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "test-key")

    assert isinstance(get_geocoder(), GoogleGeocoder)
