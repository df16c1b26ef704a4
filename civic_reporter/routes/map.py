"""Map routes - project the filtered issue list onto markers and a viewport.

Clients re-render from the returned snapshot; there is no server-side map state
between requests.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from civic_reporter.models.issue import IssueFilters, IssueView
from civic_reporter.models.map import MapSnapshot
from civic_reporter.routes.issues import issue_filters
from civic_reporter.services.issue_filters import filter_issues
from civic_reporter.services.issue_service import get_issue_service
from civic_reporter.services.map_service import MapSynchronizer, build_map_snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/map", tags=["Map"])


class MarkerClickResponse(BaseModel):
    issue: IssueView
    map: MapSnapshot


async def _filtered_issues(filters: IssueFilters):
    loop = asyncio.get_running_loop()
    try:
        issues = await loop.run_in_executor(None, get_issue_service().list_issues)
    except Exception as e:
        logger.error(f"Failed to get map issues: {e}", exc_info=True)
        return []
    return filter_issues(issues, filters)


@router.get("/issues", response_model=MapSnapshot)
async def map_issues(
    highlight: Optional[str] = Query(None, description="Issue id selected in the list"),
    filters: IssueFilters = Depends(issue_filters),
):
    """
    Markers for every filtered issue that has coordinates; the viewport is
    centered on the highlighted issue when one is given.
    """
    return build_map_snapshot(await _filtered_issues(filters), highlight)


@router.post("/markers/{issue_id}/click", response_model=MarkerClickResponse)
async def click_marker(issue_id: str, filters: IssueFilters = Depends(issue_filters)):
    """Marker click selects the issue and highlights it on the map."""
    synchronizer = MapSynchronizer()
    synchronizer.on_issue_select = lambda issue: synchronizer.set_highlighted(issue.id)
    synchronizer.set_issues(await _filtered_issues(filters))

    issue = synchronizer.click_marker(issue_id)
    if issue is None:
        raise HTTPException(status_code=404, detail=f"No marker for issue {issue_id}")
    return MarkerClickResponse(issue=issue, map=synchronizer.snapshot())
