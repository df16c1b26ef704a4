"""
Location search - turns free-text input into a selected {address, coordinates} pair.

Flow (each arrow is a state transition):
- input change → DEBOUNCING → (after the debounce delay) PREDICTING
- no places service / empty predictions → GEOCODING (auto-select)
- exact label match or top-prediction city match → details lookup → SELECTED
- otherwise predictions are shown (IDLE) until one is picked
- Enter picks the top prediction, or geocodes the query directly
- current location → GEOCODING (reverse) → SELECTED, falling back to raw coordinates
- clear → IDLE with the empty/zero selection

Network failures are logged and leave an empty result state. Nothing here
raises on a provider failure and nothing is retried.
"""

import logging
import uuid
from enum import Enum
from typing import Callable, Dict, List, Optional

from civic_reporter.core.settings import settings
from civic_reporter.models.location import (
    Coordinates,
    GeocodingError,
    GeocodingResult,
    LocationSelection,
    Prediction,
    SearchSnapshot,
)
from civic_reporter.services.geocoding.base import (
    GeocodingProvider,
    PlacesService,
    ReverseGeocodingFallback,
)
from civic_reporter.services.geocoding.geolocation import PositionSource, get_current_location
from civic_reporter.utils.debounce import Debouncer, ManualScheduler, Scheduler

logger = logging.getLogger(__name__)


class SearchState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    PREDICTING = "predicting"
    GEOCODING = "geocoding"
    SELECTED = "selected"
    ERROR = "error"


class LocationSearch:
    """
    Explicit state machine behind the location picker.

    One instance per picker; not shared between flows.
    """

    ALLOWED_TRANSITIONS: Dict[SearchState, List[SearchState]] = {
        SearchState.IDLE: [
            SearchState.DEBOUNCING,
            SearchState.PREDICTING,
            SearchState.GEOCODING,
            SearchState.SELECTED,
        ],
        SearchState.DEBOUNCING: [SearchState.IDLE, SearchState.PREDICTING, SearchState.GEOCODING],
        SearchState.PREDICTING: [
            SearchState.IDLE,
            SearchState.DEBOUNCING,
            SearchState.GEOCODING,
            SearchState.SELECTED,
        ],
        SearchState.GEOCODING: [
            SearchState.IDLE,
            SearchState.DEBOUNCING,
            SearchState.SELECTED,
            SearchState.ERROR,
        ],
        SearchState.SELECTED: [
            SearchState.IDLE,
            SearchState.DEBOUNCING,
            SearchState.PREDICTING,
            SearchState.GEOCODING,
        ],
        SearchState.ERROR: [
            SearchState.IDLE,
            SearchState.DEBOUNCING,
            SearchState.PREDICTING,
            SearchState.GEOCODING,
        ],
    }

    def __init__(
        self,
        geocoder: GeocodingProvider,
        places: Optional[PlacesService] = None,
        reverse_fallback: Optional[ReverseGeocodingFallback] = None,
        scheduler: Optional[Scheduler] = None,
        on_select: Optional[Callable[[LocationSelection], None]] = None,
        debounce_seconds: Optional[float] = None,
        min_query_length: Optional[int] = None,
    ):
        self.geocoder = geocoder
        self.places = places
        self.reverse_fallback = reverse_fallback
        self.on_select = on_select
        self.min_query_length = (
            min_query_length if min_query_length is not None else settings.SEARCH_MIN_QUERY_LENGTH
        )
        self.debouncer = Debouncer(
            debounce_seconds if debounce_seconds is not None else settings.SEARCH_DEBOUNCE_SECONDS,
            scheduler or ManualScheduler(),
        )
        self.session_token = uuid.uuid4().hex

        self.state = SearchState.IDLE
        self.query = ""
        self.predictions: List[Prediction] = []
        self.results: List[GeocodingResult] = []
        self.show_results = False
        self.selection: Optional[LocationSelection] = None
        self.error: Optional[GeocodingError] = None

    # ------------------------------------------------------------------ state

    def _transition(self, to_state: SearchState) -> None:
        if to_state != self.state and to_state not in self.ALLOWED_TRANSITIONS[self.state]:
            allowed = [s.value for s in self.ALLOWED_TRANSITIONS[self.state]]
            raise ValueError(
                f"Invalid search transition: {self.state.value} → {to_state.value}. "
                f"Allowed transitions from {self.state.value}: {allowed}"
            )
        self.state = to_state

    def _finalize(self, selection: LocationSelection) -> None:
        self.selection = selection
        self.query = selection.address
        self.predictions = []
        self.show_results = False
        self.error = None
        self._transition(SearchState.SELECTED)
        if self.on_select:
            self.on_select(selection)

    def _fail(self, error: GeocodingError) -> None:
        self.error = error
        self.results = []
        self.show_results = False
        self._transition(SearchState.ERROR)

    def snapshot(self) -> SearchSnapshot:
        return SearchSnapshot(
            state=self.state.value,
            query=self.query,
            predictions=list(self.predictions),
            results=list(self.results),
            show_results=self.show_results,
            selection=self.selection,
            error=self.error,
        )

    # ------------------------------------------------------------- operations

    def on_input_change(self, value: str) -> None:
        """Record typed text and (re)start the prediction debounce."""
        self.query = value
        self.show_results = False
        self.predictions = []
        self.results = []
        self.error = None
        self.debouncer.cancel()

        text = value.strip()
        if len(text) >= self.min_query_length:
            self._transition(SearchState.DEBOUNCING)
            self.debouncer.schedule(self.fetch_predictions, text)
        elif self.state not in (SearchState.IDLE, SearchState.SELECTED):
            self._transition(SearchState.IDLE)

    def fetch_predictions(self, text: str) -> None:
        """Request autocomplete predictions and apply the auto-select rules."""
        if self.places is None:
            logger.info("Places service unavailable, falling back to geocoding")
            self.perform_search(text, auto_select=True)
            return

        self._transition(SearchState.PREDICTING)
        predictions = self.places.get_place_predictions(text, session_token=self.session_token)

        if not predictions:
            self.predictions = []
            self.perform_search(text, auto_select=True)
            return

        match = find_auto_select(text, predictions)
        if match is not None:
            self.select_prediction(match.place_id, match.description)
            return

        self.predictions = predictions
        self.show_results = True
        self._transition(SearchState.IDLE)

    def select_prediction(self, place_id: str, description: str) -> None:
        """Resolve a prediction's coordinates and finalize the selection."""
        self.debouncer.cancel()
        if self.places is None:
            self.perform_search(description, auto_select=True)
            return

        self._transition(SearchState.PREDICTING)
        details = self.places.get_place_details(place_id, session_token=self.session_token)
        if details is None or details.lat is None or details.lng is None:
            if not description.strip():
                logger.warning(f"No coordinates for place {place_id} and nothing to geocode")
                self.show_results = False
                self._transition(SearchState.IDLE)
                return
            logger.info(f"No coordinates for place {place_id}, geocoding description instead")
            self.perform_search(description)
            return

        self._finalize(
            LocationSelection(
                address=details.formatted_address or description,
                coordinates=Coordinates(lat=details.lat, lng=details.lng),
            )
        )

    def perform_search(self, query: str, auto_select: bool = False) -> None:
        """Geocode the query; either auto-select the result or show it as a list."""
        if not query.strip():
            return

        self._transition(SearchState.GEOCODING)
        self.show_results = False
        outcome = self.geocoder.geocode_address(query)

        if isinstance(outcome, GeocodingError):
            logger.error(f"Geocoding error: {outcome.message}")
            self._fail(outcome)
            return

        self.results = [outcome]
        self.predictions = []
        if auto_select:
            self.select_result(outcome)
        else:
            self.show_results = True
            self._transition(SearchState.IDLE)

    def manual_search(self) -> None:
        if self.query.strip():
            self.debouncer.cancel()
            self.perform_search(self.query)

    def select_result(self, result: GeocodingResult) -> None:
        self._finalize(
            LocationSelection(
                address=result.formatted_address,
                coordinates=Coordinates(lat=result.lat, lng=result.lng),
            )
        )

    def press_enter(self) -> None:
        """Pick the top prediction, or geocode the query and select it."""
        query = self.query.strip()
        if not query:
            return

        self.debouncer.cancel()
        self.show_results = False
        if self.predictions:
            top = self.predictions[0]
            self.select_prediction(top.place_id, top.description)
        else:
            self.perform_search(query, auto_select=True)

    def use_current_location(self, source: Optional[PositionSource]) -> None:
        """Select the device position, reverse-geocoded when possible."""
        self.debouncer.cancel()
        self._transition(SearchState.GEOCODING)

        position = get_current_location(source)
        if isinstance(position, GeocodingError):
            logger.error(f"Geolocation error: {position.message}")
            self._fail(position)
            return

        outcome = self.geocoder.reverse_geocode(position.lat, position.lng)
        if isinstance(outcome, GeocodingResult):
            self.select_result(outcome)
            return

        logger.warning(f"Reverse geocoding failed ({outcome.error}), using fallback address")
        address = None
        if self.reverse_fallback is not None:
            address = self.reverse_fallback.reverse_geocode_display_name(position.lat, position.lng)
        self._finalize(
            LocationSelection(
                address=address or format_coordinates(position.lat, position.lng),
                coordinates=position,
            )
        )

    def clear(self) -> None:
        """Reset to the empty selection and notify the listener."""
        self.debouncer.cancel()
        self.selection = None
        self.query = ""
        self.predictions = []
        self.results = []
        self.show_results = False
        self.error = None
        self._transition(SearchState.IDLE)
        if self.on_select:
            self.on_select(LocationSelection.cleared())

    def load_initial_address(self, address: str) -> None:
        """Pre-select an initial address once, by geocoding it."""
        if address and self.selection is None:
            self.query = address
            self.perform_search(address, auto_select=True)


def find_auto_select(text: str, predictions: List[Prediction]) -> Optional[Prediction]:
    """
    Pick the prediction to select without showing a dropdown, if any.

    - Exact (case-insensitive) label match wins.
    - Otherwise the top prediction when its leading segment (before the first
      comma) equals the input.
    """
    lowered = text.lower()
    for prediction in predictions:
        if prediction.description.lower() == lowered:
            return prediction

    if predictions:
        top = predictions[0]
        top_city = top.description.split(",")[0].strip().lower()
        if top_city == text.strip().lower():
            return top
    return None


def format_coordinates(lat: float, lng: float) -> str:
    return f"{lat:.6f}, {lng:.6f}"


def create_location_search(
    scheduler: Optional[Scheduler] = None,
    on_select: Optional[Callable[[LocationSelection], None]] = None,
    initial_address: str = "",
) -> LocationSearch:
    """Build a LocationSearch wired to the configured providers."""
    from civic_reporter.services.geocoding.resolver import (
        get_geocoding_provider,
        get_places_service,
        get_reverse_fallback,
    )

    search = LocationSearch(
        geocoder=get_geocoding_provider(),
        places=get_places_service(),
        reverse_fallback=get_reverse_fallback(),
        scheduler=scheduler,
        on_select=on_select,
    )
    if initial_address:
        search.load_initial_address(initial_address)
    return search
