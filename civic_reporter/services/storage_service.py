"""
Photo storage - uploads issue photos to the Cloud Storage bucket.
"""

import logging
import time
from typing import Optional

from civic_reporter.config.firebase import get_bucket
from civic_reporter.core.settings import settings
from civic_reporter.models.issue import PhotoUploadResponse
from civic_reporter.services.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


def photo_path(filename: Optional[str] = None, now_ms: Optional[int] = None) -> str:
    """
    uploads/<millis>-<filename> for picked files, uploads/<millis>.jpg for camera captures.
    """
    millis = now_ms if now_ms is not None else int(time.time() * 1000)
    if filename:
        safe_name = filename.replace("/", "_").replace("\\", "_")
        return f"{settings.PHOTOS_PREFIX}/{millis}-{safe_name}"
    return f"{settings.PHOTOS_PREFIX}/{millis}.jpg"


def upload_photo(
    data: bytes,
    filename: Optional[str] = None,
    content_type: str = "image/jpeg",
    bucket=None,
) -> PhotoUploadResponse:
    """
    Upload (upsert) a photo and return its public URL.

    Raises StorageUnavailableError when no bucket is configured.
    """
    try:
        target = bucket if bucket is not None else get_bucket()
    except RuntimeError as e:
        raise StorageUnavailableError(str(e))

    path = photo_path(filename)
    blob = target.blob(path)
    try:
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()
    except Exception as e:
        logger.error(f"Photo upload failed for {path}: {e}", exc_info=True)
        raise

    logger.info(f"Photo uploaded: {path}")
    return PhotoUploadResponse(path=path, public_url=blob.public_url)
