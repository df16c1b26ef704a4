"""
Core settings and environment variables for the Civic Issue Reporter.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Civic Issue Reporter"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:8080,http://127.0.0.1:5173"

    # Firebase (Firestore collections + Cloud Storage bucket)
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_STORAGE_BUCKET: Optional[str] = None
    ISSUES_COLLECTION: str = "issues"
    PROFILES_COLLECTION: str = "profiles"
    PHOTOS_PREFIX: str = "uploads"

    # Google Maps Platform (geocoding, places autocomplete, maps JS)
    GOOGLE_MAPS_API_KEY: Optional[str] = None
    GEOCODING_TIMEOUT_SECONDS: float = 3.0

    # OpenStreetMap Nominatim reverse-geocoding fallback
    NOMINATIM_USER_AGENT: str = "civic-issue-reporter/1.0"

    # Location search behaviour
    SEARCH_DEBOUNCE_SECONDS: float = 0.3
    SEARCH_MIN_QUERY_LENGTH: int = 2

    # Map defaults
    MAP_DEFAULT_LAT: float = 15.8585
    MAP_DEFAULT_LNG: float = 74.5069
    MAP_DEFAULT_ZOOM: int = 13
    MAP_HIGHLIGHT_ZOOM: int = 15

    # Device geolocation options handed to clients
    GEOLOCATION_HIGH_ACCURACY: bool = True
    GEOLOCATION_TIMEOUT_MS: int = 10000
    GEOLOCATION_MAXIMUM_AGE_MS: int = 0

    # Spreadsheet export
    EXPORT_FILENAME: str = "issues_export.xlsx"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins_list(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
