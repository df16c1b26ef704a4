import logging
from typing import Optional

from civic_reporter.core.settings import settings
from .base import GeocodingProvider, PlacesService, ReverseGeocodingFallback
from .google_provider import GoogleGeocodingProvider, GooglePlacesService
from .nominatim_provider import NominatimProvider

logger = logging.getLogger(__name__)

_geocoder_instance: Optional[GeocodingProvider] = None
_places_instance: Optional[PlacesService] = None
_fallback_instance: Optional[ReverseGeocodingFallback] = None


def get_geocoding_provider() -> GeocodingProvider:
    """
    Resolve the forward/reverse geocoder.

    Always Google; without a key every call returns missing_api_key.
    """
    global _geocoder_instance
    if _geocoder_instance is None:
        _geocoder_instance = GoogleGeocodingProvider(
            api_key=settings.GOOGLE_MAPS_API_KEY,
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
        )
        logger.info("Geocoding provider initialized: google")
    return _geocoder_instance


def get_places_service() -> Optional[PlacesService]:
    """
    Resolve the autocomplete/details service.

    Returns None (service unavailable) when GOOGLE_MAPS_API_KEY is not set;
    callers fall back to plain geocoding.
    """
    global _places_instance
    if _places_instance is not None:
        return _places_instance

    api_key = settings.GOOGLE_MAPS_API_KEY
    if not api_key:
        logger.info("Places service unavailable: GOOGLE_MAPS_API_KEY not set")
        return None

    _places_instance = GooglePlacesService(api_key=api_key, timeout=settings.GEOCODING_TIMEOUT_SECONDS)
    logger.info("Places service initialized: google")
    return _places_instance


def get_reverse_fallback() -> ReverseGeocodingFallback:
    global _fallback_instance
    if _fallback_instance is None:
        _fallback_instance = NominatimProvider(
            user_agent=settings.NOMINATIM_USER_AGENT,
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
        )
        logger.info("Reverse-geocoding fallback initialized: nominatim")
    return _fallback_instance


def reset_providers() -> None:
    """Drop cached instances so the next call re-reads settings."""
    global _geocoder_instance, _places_instance, _fallback_instance
    _geocoder_instance = None
    _places_instance = None
    _fallback_instance = None
