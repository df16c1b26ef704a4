from abc import ABC, abstractmethod
from typing import List, Optional
import logging

from civic_reporter.models.location import (
    GeocodeOutcome,
    GeocodingError,
    PlaceDetails,
    Prediction,
)

logger = logging.getLogger(__name__)


class ErrorKind:
    """Well-known GeocodingError.error values."""
    MISSING_API_KEY = "missing_api_key"
    NETWORK_ERROR = "network_error"
    UNSUPPORTED = "unsupported"
    GEOLOCATION_FAILED = "geolocation_failed"
    SERVICE_UNAVAILABLE = "service_unavailable"


class GeocodingProvider(ABC):
    """
    Forward/reverse geocoding provider.

    Contract:
    - Returns GeocodingResult on success, GeocodingError otherwise.
    - MUST NEVER raise upstream exceptions.
    - Implementations should enforce a network timeout <= 3 seconds.
    - No retries.
    """

    @abstractmethod
    def geocode_address(self, address: str) -> GeocodeOutcome:
        raise NotImplementedError

    @abstractmethod
    def reverse_geocode(self, latitude: float, longitude: float) -> GeocodeOutcome:
        raise NotImplementedError


class PlacesService(ABC):
    """
    Autocomplete predictions and place details.

    Failures surface as an empty list / None, never as exceptions.
    """

    @abstractmethod
    def get_place_predictions(self, text: str, session_token: Optional[str] = None) -> List[Prediction]:
        raise NotImplementedError

    @abstractmethod
    def get_place_details(self, place_id: str, session_token: Optional[str] = None) -> Optional[PlaceDetails]:
        raise NotImplementedError


class ReverseGeocodingFallback(ABC):
    """Secondary reverse geocoder that only yields a display name."""

    @abstractmethod
    def reverse_geocode_display_name(self, latitude: float, longitude: float) -> Optional[str]:
        raise NotImplementedError


def error_result(kind: str, message: str) -> GeocodingError:
    return GeocodingError(error=kind, message=message)
