"""
Issue service - Business logic for civic issue handling.
Handles Firestore CRUD operations for issues.

DESIGN NOTE:
- Only accounts with role 'user' may report issues
- Only admins may move an issue through the status workflow
- Reads degrade to an empty list when the backend fails
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
import logging

from firebase_admin import firestore

from civic_reporter.config.firebase import get_db
from civic_reporter.core.settings import settings
from civic_reporter.models.issue import (
    IssueCreate,
    IssueResponse,
    IssueStatus,
    IssueView,
    NEXT_STATUS,
    URGENCY_SCORES,
)
from civic_reporter.models.location import Coordinates
from civic_reporter.services.errors import IssueNotFoundError
from civic_reporter.services.session import Session
from civic_reporter.utils.firestore_helpers import doc_to_dict, parse_timestamp

logger = logging.getLogger(__name__)


class IssueService:

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    @property
    def collection(self):
        return self.db.collection(settings.ISSUES_COLLECTION)

    def create_issue(self, session: Session, payload: IssueCreate) -> IssueResponse:
        """
        Store a new issue reported by the session user.

        Raises PermissionDeniedError for admin accounts.
        """
        session.require_user_role()

        latitude, longitude = payload.latitude, payload.longitude
        # A cleared location picker reports (0, 0); that is "no location".
        if not latitude and not longitude:
            latitude = longitude = None

        doc_ref = self.collection.document()
        issue_dict = {
            "title": payload.title,
            "description": payload.description,
            "category": payload.category.value if payload.category else None,
            "location_text": payload.location_text,
            "latitude": latitude,
            "longitude": longitude,
            "priority": payload.priority.value if payload.priority else None,
            "contact_info": payload.contact_info or None,
            "reporter_id": session.user_id,
            "reporter_name": session.reporter_name,
            "status": IssueStatus.OPEN.value,
            "status_history": [status_history_entry("", IssueStatus.OPEN.value, session.user_id, "Issue reported")],
            "photos": payload.photos or [],
            "created_at": firestore.SERVER_TIMESTAMP,
        }

        try:
            doc_ref.set(issue_dict)
        except Exception as e:
            logger.error(f"Failed to save issue to Firestore: {e}", exc_info=True)
            raise

        logger.info(f"Issue saved to Firestore: {doc_ref.id} (reporter={session.user_id})")
        return self._to_response(doc_to_dict(doc_ref.get()))

    def list_stored_issues(self) -> List[Dict]:
        """All issue documents, newest first. Backend failure → empty list."""
        try:
            query = self.collection.order_by("created_at", direction=firestore.Query.DESCENDING)
            return [doc_to_dict(doc) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Failed to load issues: {e}", exc_info=True)
            return []

    def list_issues(self) -> List[IssueView]:
        return [to_issue_view(data) for data in self.list_stored_issues()]

    def get_issue(self, issue_id: str) -> IssueResponse:
        data = doc_to_dict(self.collection.document(issue_id).get())
        if data is None:
            raise IssueNotFoundError(f"Issue not found: {issue_id}")
        return self._to_response(data)

    def update_issue_status(
        self,
        session: Session,
        issue_id: str,
        new_status: str,
        note: Optional[str] = None
    ) -> IssueResponse:
        """
        Admin workflow action.

        Raises PermissionDeniedError, IssueNotFoundError or ValueError
        (invalid transition).
        """
        session.require_admin()

        doc_ref = self.collection.document(issue_id)
        data = doc_to_dict(doc_ref.get())
        if data is None:
            raise IssueNotFoundError(f"Issue not found: {issue_id}")

        current_status = data.get("status") or IssueStatus.OPEN.value
        target = check_status_change(current_status, new_status)
        if target is None:
            return self._to_response(data)

        history = list(data.get("status_history") or [])
        history.append(status_history_entry(current_status, target.value, session.user_id, note))
        doc_ref.update({"status": target.value, "status_history": history})

        logger.info(f"Admin {session.user_id} moved issue {issue_id}: {current_status} → {new_status}")
        return self._to_response(doc_to_dict(doc_ref.get()))

    def _to_response(self, data: Dict) -> IssueResponse:
        return IssueResponse(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description") or "",
            category=data.get("category"),
            priority=data.get("priority"),
            status=data.get("status") or IssueStatus.OPEN.value,
            location_text=data.get("location_text") or "",
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            photos=data.get("photos") or [],
            contact_info=data.get("contact_info"),
            reporter_id=data.get("reporter_id"),
            reporter_name=data.get("reporter_name"),
            status_history=data.get("status_history") or [],
            created_at=parse_timestamp(data.get("created_at")),
        )


def check_status_change(current: str, new: str) -> Optional[IssueStatus]:
    """
    Validate an admin status change.

    Returns the target status, or None when the issue is already there.
    Raises ValueError for unknown statuses and for anything but the next step.
    """
    try:
        current_status, new_status = IssueStatus(current), IssueStatus(new)
    except ValueError:
        raise ValueError(f"Cannot move issue from {current} to {new}: unknown status") from None

    if new_status == current_status:
        return None
    expected = NEXT_STATUS[current_status]
    if new_status != expected:
        hint = f"next status is {expected.value}" if expected else f"{current_status.value} is final"
        raise ValueError(f"Cannot move issue from {current_status.value} to {new_status.value}: {hint}")
    return new_status


def status_history_entry(from_status: str, to_status: str, changed_by: str, note: Optional[str] = None) -> Dict:
    # SERVER_TIMESTAMP is not allowed inside arrays.
    return {
        "from": from_status,
        "to": to_status,
        "changed_by": changed_by,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "note": note or "",
    }


def to_issue_view(data: Dict) -> IssueView:
    """
    Project a stored issue for the dashboard.

    The dashboard's status column is the priority label; coordinates are
    attached only when both values are non-zero.
    """
    priority = data.get("priority") or "low"
    latitude = data.get("latitude")
    longitude = data.get("longitude")
    created_at = parse_timestamp(data.get("created_at"))

    return IssueView(
        id=str(data["id"]),
        title=data.get("title", ""),
        category=data.get("category") or "Other",
        status=priority,
        location=data.get("location_text") or "",
        description=data.get("description") or "",
        urgency_score=URGENCY_SCORES.get(priority, URGENCY_SCORES["low"]),
        created_at=created_at.isoformat() if created_at else None,
        reported_by=data.get("reporter_name") or "Anonymous",
        coordinates=Coordinates(lat=latitude, lng=longitude) if latitude and longitude else None,
    )


# Global service instance (singleton pattern)
_issue_service = None


def get_issue_service() -> IssueService:
    global _issue_service
    if _issue_service is None:
        _issue_service = IssueService()
    return _issue_service
