"""
Request session - the signed-in user and their role.

Lifecycle:
- created from a verified Firebase ID token on route entry
- load() reads the profile role once
- clear() on sign-out
"""

import logging
from typing import Optional

from firebase_admin import auth

from civic_reporter.config.firebase import initialize_app_once
from civic_reporter.models.profile import Role
from civic_reporter.services.errors import PermissionDeniedError

logger = logging.getLogger(__name__)


class Session:

    def __init__(self, user_id: Optional[str], email: Optional[str] = None, profile_service=None):
        self.user_id = user_id
        self.email = email
        self.profile_service = profile_service
        self.role: Optional[Role] = None
        self.reporter_name: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def load(self) -> "Session":
        """Read role and display name from the profile (missing profile → user)."""
        if not self.is_authenticated or self.role is not None:
            return self

        profile = None
        if self.profile_service is not None:
            profile = self.profile_service.ensure_profile(self.user_id, self.email)
        self.role = profile.role if profile else Role.USER
        self.reporter_name = profile.name if profile else None
        return self

    def clear(self) -> None:
        self.user_id = None
        self.email = None
        self.role = None
        self.reporter_name = None

    def require_user_role(self) -> None:
        """Only accounts with role 'user' may report issues."""
        self.load()
        if self.role != Role.USER:
            raise PermissionDeniedError("Admins cannot report issues. Switch to a user account to submit reports.")

    def require_admin(self) -> None:
        self.load()
        if not self.is_admin:
            raise PermissionDeniedError("Admin role required")


def verify_id_token(token: str) -> dict:
    """Verify a Firebase Auth ID token and return its claims."""
    initialize_app_once()
    return auth.verify_id_token(token)


def session_from_token(token: str, profile_service=None) -> Session:
    claims = verify_id_token(token)
    return Session(user_id=claims["uid"], email=claims.get("email"), profile_service=profile_service)


def sign_out(session: Session) -> None:
    """Revoke refresh tokens for the user and clear the session."""
    if session.user_id:
        try:
            initialize_app_once()
            auth.revoke_refresh_tokens(session.user_id)
        except Exception as e:
            logger.warning(f"Failed to revoke tokens for {session.user_id}: {e}")
    session.clear()
