"""
Device position lookup and maps client configuration.

The browser owns the actual geolocation and maps script APIs; the backend
receives the position the client read and hands back the options and script
URL the client should use.
"""

import logging
from typing import Callable, Optional, Union
from urllib.parse import urlencode

from civic_reporter.core.settings import settings
from civic_reporter.models.location import (
    Coordinates,
    DevicePosition,
    GeocodingError,
    GeolocationOptions,
    MapsClientConfig,
)
from .base import ErrorKind, error_result

logger = logging.getLogger(__name__)

MAPS_SCRIPT_URL = "https://maps.googleapis.com/maps/api/js"

PositionSource = Callable[[GeolocationOptions], DevicePosition]


def geolocation_options() -> GeolocationOptions:
    return GeolocationOptions(
        enable_high_accuracy=settings.GEOLOCATION_HIGH_ACCURACY,
        timeout_ms=settings.GEOLOCATION_TIMEOUT_MS,
        maximum_age_ms=settings.GEOLOCATION_MAXIMUM_AGE_MS,
    )


def get_current_location(source: Optional[PositionSource]) -> Union[Coordinates, GeocodingError]:
    """
    Read the current device position.

    No source means the capability is unsupported; any failure raised by the
    source becomes geolocation_failed.
    """
    if source is None:
        return error_result(ErrorKind.UNSUPPORTED, "Geolocation is not supported in this browser")

    try:
        position = source(geolocation_options())
    except Exception as e:
        logger.warning(f"Geolocation failed: {e}")
        return error_result(ErrorKind.GEOLOCATION_FAILED, str(e) or "Failed to get location")

    return Coordinates(lat=position.lat, lng=position.lng)


def static_position(position: Optional[DevicePosition]) -> Optional[PositionSource]:
    """Wrap a client-reported position as a PositionSource."""
    if position is None:
        return None
    return lambda options: position


def maps_script_url(api_key: Optional[str], libraries: str = "places") -> Optional[str]:
    if not api_key:
        return None
    return f"{MAPS_SCRIPT_URL}?{urlencode({'key': api_key, 'libraries': libraries})}"


def maps_client_config() -> MapsClientConfig:
    """
    Build the maps client configuration.

    Without an API key the maps surface cannot load; the config carries a
    service_unavailable error instead of a script URL.
    """
    script_url = maps_script_url(settings.GOOGLE_MAPS_API_KEY)
    error = None
    if script_url is None:
        logger.warning("Maps script unavailable: GOOGLE_MAPS_API_KEY not set")
        error = error_result(ErrorKind.SERVICE_UNAVAILABLE, "Google Maps API key is missing")

    return MapsClientConfig(
        script_url=script_url,
        default_center=Coordinates(lat=settings.MAP_DEFAULT_LAT, lng=settings.MAP_DEFAULT_LNG),
        default_zoom=settings.MAP_DEFAULT_ZOOM,
        highlight_zoom=settings.MAP_HIGHLIGHT_ZOOM,
        geolocation=geolocation_options(),
        error=error,
    )
