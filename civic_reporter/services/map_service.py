"""
Map service - project the issue list and highlighted selection onto a map.

Marker rules:
- markers are rebuilt from scratch whenever the issue list changes
- issues without coordinates never get a marker
- icon depends only on whether the issue is the highlighted one

Viewport rules:
- changing the highlighted issue recenters on it at the highlight zoom
- rebuilding markers never moves the viewport
"""

import logging
from typing import Callable, Dict, List, Optional

from civic_reporter.core.settings import settings
from civic_reporter.models.issue import IssueView
from civic_reporter.models.location import Coordinates
from civic_reporter.models.map import MapMarker, MapSnapshot, MapViewport

logger = logging.getLogger(__name__)

HIGHLIGHTED_ICON = "http://maps.google.com/mapfiles/ms/icons/red-dot.png"
DEFAULT_ICON = "http://maps.google.com/mapfiles/ms/icons/blue-dot.png"


def marker_icon(issue_id: str, highlighted_id: Optional[str]) -> str:
    return HIGHLIGHTED_ICON if highlighted_id is not None and issue_id == highlighted_id else DEFAULT_ICON


class MapSynchronizer:
    """
    Keeps a marker set consistent with an issue list and a highlighted id.
    """

    def __init__(
        self,
        on_issue_select: Optional[Callable[[IssueView], None]] = None,
        center: Optional[Coordinates] = None,
        zoom: Optional[int] = None,
        highlight_zoom: Optional[int] = None,
    ):
        self.on_issue_select = on_issue_select
        self.center = center or Coordinates(lat=settings.MAP_DEFAULT_LAT, lng=settings.MAP_DEFAULT_LNG)
        self.zoom = zoom if zoom is not None else settings.MAP_DEFAULT_ZOOM
        self.highlight_zoom = highlight_zoom if highlight_zoom is not None else settings.MAP_HIGHLIGHT_ZOOM

        self.issues: List[IssueView] = []
        self.highlighted_id: Optional[str] = None
        self.markers: Dict[str, MapMarker] = {}
        self._issues_by_id: Dict[str, IssueView] = {}

    def set_issues(self, issues: List[IssueView]) -> None:
        """Remove every marker and recreate them from the current list."""
        self.markers = {}
        self._issues_by_id = {}
        self.issues = list(issues)

        for issue in self.issues:
            if issue.coordinates is None:
                continue
            self.markers[issue.id] = MapMarker(
                issue_id=issue.id,
                title=issue.title,
                position=issue.coordinates,
                icon=marker_icon(issue.id, self.highlighted_id),
                highlighted=issue.id == self.highlighted_id,
            )
            self._issues_by_id[issue.id] = issue

        logger.debug(f"Rebuilt {len(self.markers)} markers from {len(self.issues)} issues")

    def set_highlighted(self, issue_id: Optional[str]) -> None:
        """Highlight an issue: swap the two affected icons and recenter."""
        previous = self.highlighted_id
        self.highlighted_id = issue_id

        for marker_id in {previous, issue_id}:
            marker = self.markers.get(marker_id) if marker_id is not None else None
            if marker is not None:
                marker.icon = marker_icon(marker_id, issue_id)
                marker.highlighted = marker_id == issue_id

        if issue_id is None:
            return

        issue = next((i for i in self.issues if i.id == issue_id), None)
        if issue is not None and issue.coordinates is not None:
            self.center = issue.coordinates
            self.zoom = self.highlight_zoom

    def click_marker(self, issue_id: str) -> Optional[IssueView]:
        """Invoke the selection callback for the clicked marker's issue."""
        issue = self._issues_by_id.get(issue_id)
        if issue is None:
            logger.warning(f"Click on unknown marker {issue_id}")
            return None
        if self.on_issue_select:
            self.on_issue_select(issue)
        return issue

    def snapshot(self) -> MapSnapshot:
        return MapSnapshot(
            markers=list(self.markers.values()),
            viewport=MapViewport(center=self.center, zoom=self.zoom),
            highlighted_issue_id=self.highlighted_id,
        )


def build_map_snapshot(issues: List[IssueView], highlighted_id: Optional[str] = None) -> MapSnapshot:
    """One-shot projection used by the HTTP route."""
    synchronizer = MapSynchronizer()
    synchronizer.set_issues(issues)
    synchronizer.set_highlighted(highlighted_id)
    return synchronizer.snapshot()
