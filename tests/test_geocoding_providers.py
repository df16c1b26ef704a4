from civic_reporter.models.location import (
    Coordinates,
    DevicePosition,
    GeocodingError,
    GeocodingResult,
)
from civic_reporter.services.geocoding import get_places_service
from civic_reporter.services.geocoding.google_provider import GoogleGeocodingProvider, GooglePlacesService
from civic_reporter.services.geocoding.nominatim_provider import NominatimProvider
from civic_reporter.services.geocoding.geolocation import (
    get_current_location,
    maps_client_config,
    static_position,
)


def test_geocode_success(maps_api):
    maps_api.add_geocode("Belagavi", "Belagavi, Karnataka, India", 15.8497, 74.4977, place_id="bgm")

    outcome = GoogleGeocodingProvider("test-key").geocode_address("Belagavi")

    assert outcome == GeocodingResult(
        lat=15.8497, lng=74.4977, formatted_address="Belagavi, Karnataka, India", place_id="bgm"
    )
    assert "key=test-key" in maps_api.calls[0]


def test_geocode_zero_results_returns_status(maps_api):
    outcome = GoogleGeocodingProvider("test-key").geocode_address("nowhere at all")

    assert isinstance(outcome, GeocodingError)
    assert outcome.error == "ZERO_RESULTS"
    assert outcome.message == "No results found"


def test_geocode_network_failure(maps_api):
    maps_api.network_down = True

    outcome = GoogleGeocodingProvider("test-key").geocode_address("###invalid###")

    assert outcome.error == "network_error"


def test_geocode_without_key_never_calls_network(maps_api):
    outcome = GoogleGeocodingProvider(None).geocode_address("Belagavi")

    assert outcome.error == "missing_api_key"
    assert maps_api.calls == []


def test_reverse_geocode_uses_latlng(maps_api):
    maps_api.reverse["15.85,74.5"] = {
        "formatted_address": "Tilakwadi, Belagavi",
        "geometry": {"location": {"lat": 15.85, "lng": 74.5}},
    }

    outcome = GoogleGeocodingProvider("test-key").reverse_geocode(15.85, 74.5)

    assert outcome.formatted_address == "Tilakwadi, Belagavi"
    assert "latlng=15.85%2C74.5" in maps_api.calls[0]


def test_predictions_restricted_to_cities(maps_api):
    maps_api.predictions["Par"] = [
        {"description": "Paris, France", "place_id": "paris-fr"},
        {"description": "Parma, Italy", "place_id": "parma"},
    ]

    predictions = GooglePlacesService("test-key").get_place_predictions("Par", session_token="tok")

    assert [p.place_id for p in predictions] == ["paris-fr", "parma"]
    call = maps_api.calls_to("autocomplete")[0]
    assert "types=%28cities%29" in call
    assert "sessiontoken=tok" in call


def test_predictions_empty_on_failure(maps_api):
    maps_api.network_down = True

    assert GooglePlacesService("test-key").get_place_predictions("Par") == []


def test_place_details(maps_api):
    maps_api.add_place("paris-fr", "Paris, France", 48.8566, 2.3522)
    service = GooglePlacesService("test-key")

    details = service.get_place_details("paris-fr")

    assert (details.lat, details.lng) == (48.8566, 2.3522)
    assert details.formatted_address == "Paris, France"
    assert service.get_place_details("unknown") is None


def test_places_service_unavailable_without_key(no_maps_key):
    assert get_places_service() is None


def test_nominatim_display_name(maps_api):
    maps_api.nominatim["15.85,74.5"] = "Tilakwadi, Belagavi, Karnataka, India"
    provider = NominatimProvider(user_agent="test-agent/1.0")

    assert provider.reverse_geocode_display_name(15.85, 74.5) == "Tilakwadi, Belagavi, Karnataka, India"
    assert provider.reverse_geocode_display_name(1.0, 2.0) is None


def test_nominatim_swallows_network_errors(maps_api):
    maps_api.network_down = True

    assert NominatimProvider().reverse_geocode_display_name(15.85, 74.5) is None


def test_current_location_from_device_position():
    source = static_position(DevicePosition(lat=15.85, lng=74.5, accuracy=12))

    assert get_current_location(source) == Coordinates(lat=15.85, lng=74.5)
    assert get_current_location(static_position(None)).error == "unsupported"


def test_maps_config_without_key(no_maps_key):
    config = maps_client_config()

    assert config.script_url is None
    assert config.error.error == "service_unavailable"
    assert config.default_zoom == 13
    assert config.highlight_zoom == 15


def test_maps_config_with_key(maps_api):
    config = maps_client_config()

    assert config.error is None
    assert "key=test-key" in config.script_url
    assert "libraries=places" in config.script_url
    assert config.geolocation.timeout_ms == 10000
