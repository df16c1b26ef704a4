"""
Firestore document helpers.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def doc_to_dict(doc) -> Optional[Dict[str, Any]]:
    """Document snapshot → dict with its id, or None when missing."""
    if doc is None or not doc.exists:
        return None
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse Firestore timestamps, datetimes and ISO strings to timezone-aware UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    if hasattr(value, "timestamp"):
        try:
            return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        except (TypeError, ValueError, OSError):
            return None
    return None
