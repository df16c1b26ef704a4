import logging
from typing import Dict, Any, Optional

import requests

from .base import ReverseGeocodingFallback

logger = logging.getLogger(__name__)


class NominatimProvider(ReverseGeocodingFallback):
    """
    OpenStreetMap Nominatim reverse-geocoding fallback.

    - No API key required.
    - Uses a strict timeout (<= 3 seconds).
    - Includes a User-Agent header as required by Nominatim usage policy.
    - Never raises upstream exceptions; returns None on failure.
    """

    BASE_URL = "https://nominatim.openstreetmap.org/reverse"

    def __init__(self, user_agent: str = "civic-issue-reporter/1.0", timeout: float = 3.0):
        self.user_agent = user_agent
        self.timeout = timeout

    def reverse_geocode_display_name(self, latitude: float, longitude: float) -> Optional[str]:
        try:
            params = {
                "lat": latitude,
                "lon": longitude,
                "format": "json",
            }
            headers = {
                "User-Agent": self.user_agent,
            }
            resp = requests.get(self.BASE_URL, params=params, headers=headers, timeout=self.timeout)
            if resp.status_code != 200:
                logger.warning(f"Nominatim reverse-geocode failed with status {resp.status_code}")
                return None

            data: Dict[str, Any] = resp.json()
            return data.get("display_name") or None
        except Exception as e:
            logger.warning(f"Nominatim reverse-geocode error: {e}")
            return None
