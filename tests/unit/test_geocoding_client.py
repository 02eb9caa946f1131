from __future__ import annotations

import threading
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from geopy.exc import GeocoderTimedOut

from zone_import.models.config_models import GeocodingConfig
from zone_import.models.geo import GeoPoint
from zone_import.services.geocoding import GeocodeStatus, GeocodingClient
from zone_import.services.throttle import GeocodeCancelledError


def test_resolved_address(geocoding_client: GeocodingClient, fake_geocoder):
    result = geocoding_client.geocode("1 Main St, Springfield")
    assert result.status is GeocodeStatus.RESOLVED
    assert result.resolved
    assert result.point == GeoPoint(40.0, -75.0)
    assert result.display_name == "1 Main St, Springfield (resolved)"
    assert fake_geocoder.queries == ["1 Main St, Springfield"]


def test_address_without_match(geocoding_client: GeocodingClient):
    result = geocoding_client.geocode("Nowhere Lane")
    assert result.status is GeocodeStatus.NOT_FOUND
    assert not result.resolved
    assert result.point is None


def test_service_error_is_failed(geocoding_client: GeocodingClient):
    result = geocoding_client.geocode("Broken Address")
    assert result.status is GeocodeStatus.FAILED
    assert "service unavailable" in (result.error or "")


def test_timeout_is_failed(make_client):
    client = make_client({"Slow St": GeocoderTimedOut("timed out")})
    assert client.geocode("Slow St").status is GeocodeStatus.FAILED


def test_blank_address_is_not_sent(geocoding_client: GeocodingClient, fake_geocoder):
    result = geocoding_client.geocode("   ")
    assert result.status is GeocodeStatus.NOT_FOUND
    assert fake_geocoder.queries == []


def test_address_is_trimmed_before_query(geocoding_client: GeocodingClient, fake_geocoder):
    geocoding_client.geocode("  1 Main St, Springfield  ")
    assert fake_geocoder.queries == ["1 Main St, Springfield"]


def test_unusable_coordinates_are_failed():
    geocoder = MagicMock()
    geocoder.geocode.return_value = SimpleNamespace(latitude="north", longitude=None, address="x")
    client = GeocodingClient(GeocodingConfig(), geocoder=geocoder)
    assert client.geocode("x").status is GeocodeStatus.FAILED


def test_default_geocoder_is_nominatim_from_config():
    config = GeocodingConfig(domain="nominatim.example.org", user_agent="ua-test", timeout_seconds=3)
    with patch("zone_import.services.geocoding.Nominatim") as nominatim:
        GeocodingClient(config)
    nominatim.assert_called_once_with(user_agent="ua-test", domain="nominatim.example.org", timeout=3)


def test_lookups_are_paced(geocoding_client: GeocodingClient, fake_clock):
    geocoding_client.geocode("1 Main St, Springfield")
    geocoding_client.geocode("2 Oak Ave, Springfield")
    assert fake_clock.sleeps == [1.0]


def test_blank_address_does_not_use_a_request_slot(geocoding_client: GeocodingClient, fake_clock):
    geocoding_client.geocode("1 Main St, Springfield")
    geocoding_client.geocode("")
    assert fake_clock.sleeps == []


def test_cancel_event_stops_lookups(geocoding_client: GeocodingClient, fake_geocoder):
    event = threading.Event()
    geocoding_client.cancel_event = event
    event.set()
    with pytest.raises(GeocodeCancelledError):
        geocoding_client.geocode("1 Main St, Springfield")
    assert fake_geocoder.queries == []
