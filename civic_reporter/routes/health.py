"""
Health endpoints for deployment readiness.

/health reports which optional integrations are configured; /health/db and
/health/maps check Firestore and the maps client configuration.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException

from civic_reporter.config.firebase import get_db
from civic_reporter.core.settings import settings
from civic_reporter.services.geocoding.geolocation import maps_client_config


router = APIRouter(prefix="/health", tags=["Health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "maps_configured": bool(settings.GOOGLE_MAPS_API_KEY),
        "storage_configured": bool(settings.FIREBASE_STORAGE_BUCKET),
        "timestamp": _now(),
    }


@router.get("/db")
async def database_health():
    """
    List top-level collections and check the issue/profile collections exist.
    503 when Firestore cannot be reached.
    """
    try:
        names = {c.id for c in get_db().collections()}
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Database connection failed: {str(e)}")

    return {
        "status": "healthy",
        "database": "firestore",
        "connected": True,
        "collections_count": len(names),
        "issues_collection": settings.ISSUES_COLLECTION in names,
        "profiles_collection": settings.PROFILES_COLLECTION in names,
        "timestamp": _now(),
    }


@router.get("/maps")
async def maps_health():
    """Maps script availability; degraded (not failed) without an API key."""
    config = maps_client_config()
    return {
        "status": "degraded" if config.error else "healthy",
        "autocomplete": config.error is None,
        "error": config.error.error if config.error else None,
        "timestamp": _now(),
    }
