import logging
from typing import Dict, Any, List, Optional

import requests

from civic_reporter.models.location import (
    GeocodeOutcome,
    GeocodingResult,
    PlaceDetails,
    Prediction,
)
from .base import ErrorKind, GeocodingProvider, PlacesService, error_result

logger = logging.getLogger(__name__)


class GoogleGeocodingProvider(GeocodingProvider):
    """
    Google Maps Geocoding API provider (forward and reverse).

    - Missing key returns a missing_api_key error without touching the network.
    - Provider status other than OK (or no results) is returned as the error kind.
    - Transport and parse failures return network_error.
    """

    BASE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(self, api_key: Optional[str], timeout: float = 3.0):
        self.api_key = api_key
        self.timeout = timeout

    def geocode_address(self, address: str) -> GeocodeOutcome:
        return self._request({"address": address})

    def reverse_geocode(self, latitude: float, longitude: float) -> GeocodeOutcome:
        return self._request({"latlng": f"{latitude},{longitude}"})

    def _request(self, params: Dict[str, Any]) -> GeocodeOutcome:
        if not self.api_key:
            logger.info("GoogleGeocodingProvider called without API key")
            return error_result(ErrorKind.MISSING_API_KEY, "Google Maps API key is missing")

        try:
            resp = requests.get(self.BASE_URL, params={**params, "key": self.api_key}, timeout=self.timeout)
            data: Dict[str, Any] = resp.json()

            results = data.get("results") or []
            if data.get("status") != "OK" or not results:
                status = data.get("status") or f"HTTP_{resp.status_code}"
                logger.warning(f"Google geocode returned {status} for {params}")
                return error_result(status, data.get("error_message") or "No results found")

            first = results[0]
            location = first["geometry"]["location"]
            return GeocodingResult(
                lat=location["lat"],
                lng=location["lng"],
                formatted_address=first.get("formatted_address", ""),
                place_id=first.get("place_id"),
            )
        except Exception as e:
            logger.warning(f"Google geocode error: {e}")
            return error_result(ErrorKind.NETWORK_ERROR, str(e) or "Failed to fetch geocoding results")


class GooglePlacesService(PlacesService):
    """
    Google Places autocomplete + details over HTTP.

    Predictions are restricted to cities. Failures are logged and surface as
    an empty prediction list or None details.
    """

    AUTOCOMPLETE_URL = "https://maps.googleapis.com/maps/api/place/autocomplete/json"
    DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"

    def __init__(self, api_key: str, timeout: float = 3.0):
        self.api_key = api_key
        self.timeout = timeout

    def get_place_predictions(self, text: str, session_token: Optional[str] = None) -> List[Prediction]:
        params = {"input": text, "types": "(cities)", "key": self.api_key}
        if session_token:
            params["sessiontoken"] = session_token

        try:
            resp = requests.get(self.AUTOCOMPLETE_URL, params=params, timeout=self.timeout)
            data: Dict[str, Any] = resp.json()
            if data.get("status") not in ("OK", "ZERO_RESULTS"):
                logger.warning(f"Places autocomplete returned {data.get('status')}: {data.get('error_message')}")
                return []
            return [
                Prediction(description=p["description"], place_id=p["place_id"])
                for p in data.get("predictions") or []
                if p.get("description") and p.get("place_id")
            ]
        except Exception as e:
            logger.warning(f"Places autocomplete error: {e}")
            return []

    def get_place_details(self, place_id: str, session_token: Optional[str] = None) -> Optional[PlaceDetails]:
        params = {
            "place_id": place_id,
            "fields": "geometry/location,formatted_address",
            "key": self.api_key,
        }
        if session_token:
            params["sessiontoken"] = session_token

        try:
            resp = requests.get(self.DETAILS_URL, params=params, timeout=self.timeout)
            data: Dict[str, Any] = resp.json()
            result = data.get("result")
            if data.get("status") != "OK" or not result:
                logger.warning(f"Place details returned {data.get('status')} for {place_id}")
                return None

            location = (result.get("geometry") or {}).get("location") or {}
            return PlaceDetails(
                lat=location.get("lat"),
                lng=location.get("lng"),
                formatted_address=result.get("formatted_address"),
            )
        except Exception as e:
            logger.warning(f"Place details error: {e}")
            return None
