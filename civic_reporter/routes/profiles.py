"""
Profile and session endpoints.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from civic_reporter.models.location import DevicePosition
from civic_reporter.models.profile import LocationAutofill, ProfileResponse, ProfileUpdate
from civic_reporter.routes.deps import get_session
from civic_reporter.services.errors import ProfileNotFoundError
from civic_reporter.services.profile_service import autofill_location, get_profile_service
from civic_reporter.services.session import Session, sign_out

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=ProfileResponse)
async def get_my_profile(session: Session = Depends(get_session)):
    profile = get_profile_service().get_profile(session.user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.put("", response_model=ProfileResponse)
async def complete_my_profile(update: ProfileUpdate, session: Session = Depends(get_session)):
    """
    Save the profile form and mark it complete.
    """
    try:
        return get_profile_service().complete_profile(session.user_id, update)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to save profile: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save profile: {str(e)}"
        )


@router.post("/autofill-location", response_model=LocationAutofill)
async def autofill_my_location(position: DevicePosition, session: Session = Depends(get_session)):
    """Describe the device position for the profile's location fields."""
    return autofill_location(position.lat, position.lng)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out_session(session: Session = Depends(get_session)):
    sign_out(session)
