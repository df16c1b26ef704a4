"""
Pydantic models for location resolution.
These are ephemeral values produced by network calls and never persisted.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Union


class Coordinates(BaseModel):
    """A latitude/longitude pair."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class GeocodingResult(BaseModel):
    """Forward/reverse geocoding result from the maps provider."""
    lat: float
    lng: float
    formatted_address: str
    place_id: Optional[str] = None


class GeocodingError(BaseModel):
    """
    Error variant returned instead of raising.

    `error` is one of the well-known kinds in ErrorKind or the raw provider status
    (e.g. ZERO_RESULTS, REQUEST_DENIED).
    """
    error: str
    message: str


GeocodeOutcome = Union[GeocodingResult, GeocodingError]


class Prediction(BaseModel):
    """Candidate place suggestion from the autocomplete service."""
    description: str
    place_id: str


class PlaceDetails(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    formatted_address: Optional[str] = None


class LocationSelection(BaseModel):
    """The finalized {address, coordinates} pair handed to forms."""
    address: str = ""
    coordinates: Coordinates = Field(default_factory=lambda: Coordinates(lat=0, lng=0))

    @classmethod
    def cleared(cls) -> "LocationSelection":
        return cls(address="", coordinates=Coordinates(lat=0, lng=0))


class DevicePosition(BaseModel):
    """Position reported by the client device."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0, description="Accuracy radius in meters")


class GeolocationOptions(BaseModel):
    enable_high_accuracy: bool = True
    timeout_ms: int = 10000
    maximum_age_ms: int = 0


class SearchSnapshot(BaseModel):
    """Serializable view of a location search after an operation."""
    state: str
    query: str
    predictions: List[Prediction] = Field(default_factory=list)
    results: List[GeocodingResult] = Field(default_factory=list)
    show_results: bool = False
    selection: Optional[LocationSelection] = None
    error: Optional[GeocodingError] = None


class MapsClientConfig(BaseModel):
    """Configuration a browser client needs to load the maps surface."""
    script_url: Optional[str] = None
    default_center: Coordinates
    default_zoom: int
    highlight_zoom: int
    geolocation: GeolocationOptions
    error: Optional[GeocodingError] = None
