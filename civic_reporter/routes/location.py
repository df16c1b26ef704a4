"""
Location routes - address search, autocomplete selection, geocoding and current position.

Request/response endpoints run one search step per call. The websocket keeps a
LocationSearch alive per connection so typed input is debounced server-side.
"""

import asyncio
import logging
from functools import partial
from typing import Callable, List, Optional, Union

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from civic_reporter.models.location import (
    DevicePosition,
    GeocodingError,
    GeocodingResult,
    MapsClientConfig,
    Prediction,
    SearchSnapshot,
)
from civic_reporter.services.geocoding.geolocation import maps_client_config, static_position
from civic_reporter.services.geocoding.resolver import get_geocoding_provider
from civic_reporter.services.location_search import LocationSearch, create_location_search

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/location", tags=["Location"])


class PredictionSelectRequest(BaseModel):
    place_id: str
    description: str


class EnterRequest(BaseModel):
    query: str
    predictions: List[Prediction] = Field(default_factory=list, description="Predictions currently shown")


class CurrentLocationRequest(BaseModel):
    position: Optional[DevicePosition] = Field(None, description="Omit when the device has no geolocation")


@router.get("/config", response_model=MapsClientConfig)
async def location_config():
    """Maps script URL, default viewport and geolocation options for clients."""
    return maps_client_config()


@router.get("/search", response_model=SearchSnapshot)
async def search_location(q: str = Query("", description="Text typed into the location field")):
    """
    Run the prediction step for a query: auto-selects exact/near-exact matches,
    otherwise returns predictions (or a geocode fallback result).
    """
    search = create_location_search()
    search.query = q
    text = q.strip()
    if len(text) >= search.min_query_length:
        await _run(search.fetch_predictions, text)
    return search.snapshot()


@router.post("/select", response_model=SearchSnapshot)
async def select_prediction(request: PredictionSelectRequest):
    search = create_location_search()
    await _run(search.select_prediction, request.place_id, request.description)
    return search.snapshot()


@router.post("/enter", response_model=SearchSnapshot)
async def press_enter(request: EnterRequest):
    """Select the top shown prediction, or geocode the query and select it."""
    search = create_location_search()
    search.query = request.query
    search.predictions = list(request.predictions)
    await _run(search.press_enter)
    return search.snapshot()


@router.post("/current", response_model=SearchSnapshot)
async def current_location(request: CurrentLocationRequest):
    """Reverse-geocode the device position, falling back to raw coordinates."""
    search = create_location_search()
    await _run(search.use_current_location, static_position(request.position))
    return search.snapshot()


@router.get("/geocode", response_model=Union[GeocodingResult, GeocodingError])
async def geocode(address: str = Query(..., min_length=1)):
    return await _run(get_geocoding_provider().geocode_address, address)


@router.get("/reverse", response_model=Union[GeocodingResult, GeocodingError])
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
):
    return await _run(get_geocoding_provider().reverse_geocode, lat, lng)


async def _run(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args))


class _PendingCall:
    def __init__(self, loop):
        self.loop = loop
        self.cancelled = False
        self.timer = None

    def cancel(self):
        self.cancelled = True
        if self.timer is not None:
            self.loop.call_soon_threadsafe(self.timer.cancel)


class _LoopScheduler:
    """
    Debounce scheduler that runs the fired callback through the socket's runner.

    Search steps run in the executor, so timers are armed and cancelled via
    call_soon_threadsafe.
    """

    def __init__(self, loop, runner):
        self.loop = loop
        self.runner = runner
        self.tasks = set()

    def call_later(self, delay, callback, *args):
        pending = _PendingCall(self.loop)

        def arm():
            if not pending.cancelled:
                pending.timer = self.loop.call_later(delay, self._spawn, pending, callback, args)

        self.loop.call_soon_threadsafe(arm)
        return pending

    def _spawn(self, pending, callback, args):
        if pending.cancelled:
            return
        task = self.loop.create_task(self.runner(callback, *args, pending=pending))
        self.tasks.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task):
        self.tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Debounced location step failed: {task.exception()}")


class _StepRunner:
    """
    Runs one search step at a time in the executor, then sends a snapshot.

    A debounced step whose handle was cancelled while it waited for the lock
    is dropped.
    """

    def __init__(self, loop, send_snapshot):
        self.loop = loop
        self.send_snapshot = send_snapshot
        self.lock = asyncio.Lock()

    async def run(self, func, *args, pending: Optional[_PendingCall] = None):
        async with self.lock:
            if pending is not None and pending.cancelled:
                logger.debug("Dropping cancelled debounced step")
                return
            await self.loop.run_in_executor(None, partial(func, *args))
            await self.send_snapshot()


def _action_for(search: LocationSearch, message: dict) -> Optional[Callable[[], None]]:
    action = message.get("action")
    if action == "input":
        return partial(search.on_input_change, str(message.get("value", "")))
    if action == "select_prediction":
        return partial(search.select_prediction, message["place_id"], message.get("description", ""))
    if action == "select_result":
        return partial(search.select_result, GeocodingResult(**message["result"]))
    if action == "enter":
        return search.press_enter
    if action == "manual_search":
        return search.manual_search
    if action == "current_location":
        position = message.get("position")
        source = static_position(DevicePosition(**position)) if position else None
        return partial(search.use_current_location, source)
    if action == "clear":
        return search.clear
    return None


@router.websocket("/ws")
async def location_socket(websocket: WebSocket):
    """
    Live location picker.

    Client sends {"action": ...}; the server answers every processed step
    (including debounced prediction lookups) with a SearchSnapshot.
    """
    await websocket.accept()
    loop = asyncio.get_running_loop()

    async def send_snapshot():
        try:
            await websocket.send_json(search.snapshot().model_dump(mode="json"))
        except Exception as e:
            logger.info(f"Location socket closed before snapshot could be sent: {e}")

    runner = _StepRunner(loop, send_snapshot)
    scheduler = _LoopScheduler(loop, runner.run)
    search = create_location_search(scheduler=scheduler)

    initial = websocket.query_params.get("initial")
    if initial:
        await runner.run(search.load_initial_address, initial)

    try:
        while True:
            message = await websocket.receive_json()
            try:
                step = _action_for(search, message)
            except (KeyError, TypeError, ValueError) as e:
                await websocket.send_json({"error": "invalid_message", "message": str(e)})
                continue
            if step is None:
                await websocket.send_json({"error": "unknown_action", "message": str(message.get("action"))})
                continue
            try:
                await runner.run(step)
            except ValueError as e:
                logger.warning(f"Rejected location step: {e}")
                await websocket.send_json({"error": "invalid_transition", "message": str(e)})
    except WebSocketDisconnect:
        logger.info("Location socket disconnected")
    finally:
        search.debouncer.cancel()
