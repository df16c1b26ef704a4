"""
Profile Service - Manage user profiles in Firestore.
"""

from typing import Optional, Dict
import logging

from civic_reporter.config.firebase import get_db
from civic_reporter.core.settings import settings
from civic_reporter.models.location import GeocodingResult
from civic_reporter.models.profile import LocationAutofill, ProfileResponse, ProfileUpdate, Role
from civic_reporter.services.errors import ProfileNotFoundError
from civic_reporter.services.geocoding.resolver import get_geocoding_provider, get_reverse_fallback
from civic_reporter.utils.firestore_helpers import doc_to_dict

logger = logging.getLogger(__name__)


class ProfileService:
    """
    Service for profile management in Firestore.
    Profiles are keyed by the auth user id.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    def _ref(self, user_id: str):
        return self.db.collection(settings.PROFILES_COLLECTION).document(user_id)

    def get_profile(self, user_id: str) -> Optional[ProfileResponse]:
        """
        Get a profile by user id.

        Returns None if the profile does not exist or the read fails.
        """
        try:
            data = doc_to_dict(self._ref(user_id).get())
        except Exception as e:
            logger.error(f"Failed to load profile {user_id}: {str(e)}")
            return None

        if data is None:
            return None
        return self._to_response(data)

    def ensure_profile(self, user_id: str, email: Optional[str] = None) -> ProfileResponse:
        """Create the signup profile (role user, incomplete) if it is missing."""
        existing = self.get_profile(user_id)
        if existing is not None:
            return existing

        data = {"email": email, "role": Role.USER.value, "is_complete": False}
        self._ref(user_id).set(data)
        logger.info(f"Profile created: {user_id}")
        return self._to_response({**data, "id": user_id})

    def complete_profile(self, user_id: str, update: ProfileUpdate) -> ProfileResponse:
        """
        Save the profile form.

        - blank strings are stored as null
        - organization_name is kept only for admins
        - latitude/longitude are parsed from the typed text
        """
        ref = self._ref(user_id)
        if not ref.get().exists:
            raise ProfileNotFoundError(f"Profile not found: {user_id}")

        updates: Dict = {
            "name": update.name or None,
            "phone": update.phone or None,
            "avatar_url": update.avatar_url or None,
            "role": update.role.value,
            "organization_name": (update.organization_name or None) if update.role == Role.ADMIN else None,
            "location_text": update.location_text or None,
            "latitude": _parse_float(update.latitude),
            "longitude": _parse_float(update.longitude),
            "is_complete": True,
        }

        try:
            ref.update(updates)
        except Exception as e:
            logger.error(f"Failed to save profile {user_id}: {str(e)}", exc_info=True)
            raise

        logger.info(f"Profile completed: {user_id} (role={update.role.value})")
        return self._to_response(doc_to_dict(ref.get()))

    def get_role(self, user_id: str) -> Role:
        profile = self.get_profile(user_id)
        return profile.role if profile else Role.USER

    def _to_response(self, data: Dict) -> ProfileResponse:
        return ProfileResponse(
            id=data["id"],
            email=data.get("email"),
            role=Role.parse(data.get("role")),
            name=data.get("name"),
            phone=data.get("phone"),
            avatar_url=data.get("avatar_url"),
            organization_name=data.get("organization_name"),
            location_text=data.get("location_text"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            is_complete=bool(data.get("is_complete", False)),
        )


def autofill_location(latitude: float, longitude: float) -> LocationAutofill:
    """
    Describe a device position for the profile form.

    Tries the Google reverse geocoder, then Nominatim, then plain coordinates.
    """
    outcome = get_geocoding_provider().reverse_geocode(latitude, longitude)
    if isinstance(outcome, GeocodingResult):
        return LocationAutofill(
            location_text=outcome.formatted_address,
            latitude=latitude,
            longitude=longitude,
            source="google",
        )

    display_name = get_reverse_fallback().reverse_geocode_display_name(latitude, longitude)
    if display_name:
        return LocationAutofill(
            location_text=display_name,
            latitude=latitude,
            longitude=longitude,
            source="nominatim",
        )

    return LocationAutofill(
        location_text=f"Lat {latitude:.5f}, Lng {longitude:.5f}",
        latitude=latitude,
        longitude=longitude,
        source="coordinates",
    )


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None or not str(value).strip():
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric coordinate: {value!r}")
        return None


# Global service instance (singleton pattern)
_profile_service = None


def get_profile_service() -> ProfileService:
    global _profile_service
    if _profile_service is None:
        _profile_service = ProfileService()
    return _profile_service
