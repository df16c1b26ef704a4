"""
Shared route dependencies.
"""

import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from civic_reporter.services.profile_service import get_profile_service
from civic_reporter.services.session import Session, session_from_token

logger = logging.getLogger(__name__)


def get_session(authorization: Optional[str] = Header(None)) -> Session:
    """
    Build the request session from an `Authorization: Bearer <id token>` header.
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    token = authorization.split(" ", 1)[1].strip()
    try:
        session = session_from_token(token, profile_service=get_profile_service())
    except Exception as e:
        logger.warning(f"ID token verification failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )
    return session.load()
