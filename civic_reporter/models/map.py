"""
Map models - marker set and viewport projected from the issue list.
"""

from typing import List, Optional
from pydantic import BaseModel

from civic_reporter.models.location import Coordinates


class MapMarker(BaseModel):
    issue_id: str
    title: str
    position: Coordinates
    icon: str
    highlighted: bool = False


class MapViewport(BaseModel):
    center: Coordinates
    zoom: int


class MapSnapshot(BaseModel):
    markers: List[MapMarker]
    viewport: MapViewport
    highlighted_issue_id: Optional[str] = None
