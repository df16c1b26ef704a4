"""
Location services: Google geocoding/places, Nominatim fallback, device position.
"""

from civic_reporter.services.geocoding.base import (
    ErrorKind,
    GeocodingProvider,
    PlacesService,
    ReverseGeocodingFallback,
)
from civic_reporter.services.geocoding.resolver import (
    get_geocoding_provider,
    get_places_service,
    get_reverse_fallback,
)

__all__ = [
    "ErrorKind",
    "GeocodingProvider",
    "PlacesService",
    "ReverseGeocodingFallback",
    "get_geocoding_provider",
    "get_places_service",
    "get_reverse_fallback",
]
