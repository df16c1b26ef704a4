"""
Issue endpoints - reporting, dashboard listing, export, photo upload and admin status changes.
"""

import asyncio
import logging
from functools import partial
from io import BytesIO

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from civic_reporter.core.settings import settings
from civic_reporter.models.issue import (
    IssueCreate,
    IssueFilters,
    IssueListResponse,
    IssueResponse,
    IssueStatusUpdate,
    PhotoUploadResponse,
)
from civic_reporter.routes.deps import get_session
from civic_reporter.services.errors import (
    IssueNotFoundError,
    NoIssuesToExportError,
    PermissionDeniedError,
    StorageUnavailableError,
)
from civic_reporter.services.export_service import XLSX_MEDIA_TYPE, export_issues_xlsx
from civic_reporter.services.issue_filters import active_filter_count, filter_issues
from civic_reporter.services.issue_service import get_issue_service
from civic_reporter.services.session import Session
from civic_reporter.services.storage_service import upload_photo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/issues", tags=["Issues"])


def issue_filters(
    search: str = Query("", description="Matches title, description or location"),
    category: str = Query("all"),
    status: str = Query("all", description="Priority label: urgent, high, medium, low"),
    location: str = Query("all"),
    date_range: str = Query("all"),
) -> IssueFilters:
    return IssueFilters(
        search=search,
        category=category,
        status=status,
        location=location,
        date_range=date_range,
    )


async def _run(func, *args, **kwargs):
    # Firestore and Storage clients are blocking; keep them off the event loop.
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=IssueResponse)
async def report_issue(payload: IssueCreate, session: Session = Depends(get_session)):
    """
    Submit a new issue as the signed-in user.
    Admin accounts are rejected with 403.
    """
    try:
        logger.info(f"POST /issues - title={payload.title!r}, category={payload.category}")
        return await _run(get_issue_service().create_issue, session, payload)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except Exception as e:
        logger.error(f"POST /issues - Issue creation failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to submit your report: {str(e)}"
        )


@router.get("", response_model=IssueListResponse)
async def list_issues(filters: IssueFilters = Depends(issue_filters)):
    """Dashboard list: newest first, filtered."""
    issues = await _run(get_issue_service().list_issues)
    filtered = filter_issues(issues, filters)
    return IssueListResponse(
        issues=filtered,
        count=len(filtered),
        active_filter_count=active_filter_count(filters),
    )


@router.get("/export")
async def export_issues(filters: IssueFilters = Depends(issue_filters)):
    """Download the filtered issue list as an xlsx workbook."""
    issues = filter_issues(await _run(get_issue_service().list_issues), filters)
    try:
        content = export_issues_xlsx(issues)
    except NoIssuesToExportError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{settings.EXPORT_FILENAME}"'},
    )


@router.post("/photos", status_code=status.HTTP_201_CREATED, response_model=PhotoUploadResponse)
async def upload_issue_photo(
    file: UploadFile = File(...),
    capture: bool = Form(False, description="True for camera captures (stored as <millis>.jpg)"),
    session: Session = Depends(get_session),
):
    """Upload a photo for an issue being reported and return its public URL."""
    data = await file.read()
    filename = None if capture else file.filename
    try:
        return await _run(
            upload_photo,
            data,
            filename=filename,
            content_type=file.content_type or "image/jpeg",
        )
    except StorageUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except Exception as e:
        logger.error(f"Photo upload failed for user {session.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Upload Error: {str(e)}"
        )


@router.get("/{issue_id}", response_model=IssueResponse)
async def get_issue(issue_id: str):
    try:
        return await _run(get_issue_service().get_issue, issue_id)
    except IssueNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.patch("/{issue_id}/status", response_model=IssueResponse)
async def update_issue_status(
    issue_id: str,
    request: IssueStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Move an issue through open → in_progress → resolved (admins only).
    """
    try:
        return await _run(
            get_issue_service().update_issue_status,
            session,
            issue_id,
            request.status,
            note=request.note,
        )
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except IssueNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
