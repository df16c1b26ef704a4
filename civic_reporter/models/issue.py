"""
Pydantic models for civic issues.
These models handle validation for issue submission and list/map responses.
"""

from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional, List, Dict
from enum import Enum

from civic_reporter.models.location import Coordinates


class IssueCategory(str, Enum):
    INFRASTRUCTURE = "Infrastructure"
    UTILITIES = "Utilities"
    PUBLIC_SAFETY = "Public Safety"
    ENVIRONMENT = "Environment"
    TRANSPORTATION = "Transportation"
    VANDALISM = "Vandalism"
    NOISE = "Noise"
    OTHER = "Other"


class IssuePriority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IssueStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


# Issues only move forward one step at a time; resolved is final.
NEXT_STATUS: Dict[IssueStatus, Optional[IssueStatus]] = {
    IssueStatus.OPEN: IssueStatus.IN_PROGRESS,
    IssueStatus.IN_PROGRESS: IssueStatus.RESOLVED,
    IssueStatus.RESOLVED: None,
}


URGENCY_SCORES: Dict[str, int] = {
    IssuePriority.URGENT.value: 90,
    IssuePriority.HIGH.value: 75,
    IssuePriority.MEDIUM.value: 50,
    IssuePriority.LOW.value: 25,
}


class IssueCreate(BaseModel):
    """
    Model for creating a new issue (incoming POST request).
    Reporter identity comes from the session, not from the body.
    """
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    category: Optional[IssueCategory] = None
    location_text: str = Field("", max_length=500, description="Free-text location shown to users")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    priority: Optional[IssuePriority] = None
    contact_info: Optional[str] = Field(None, max_length=200)
    photos: List[str] = Field(default_factory=list, description="Public photo URLs")

    @model_validator(mode="after")
    def check_coordinate_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Broken streetlight",
                "description": "Streetlight near the bus stop has been out for a week.",
                "category": "Utilities",
                "location_text": "Belagavi, Karnataka, India",
                "latitude": 15.8497,
                "longitude": 74.4977,
                "priority": "medium",
                "photos": ["https://storage.googleapis.com/bucket/uploads/1700000000000.jpg"],
            }
        }


class IssueResponse(BaseModel):
    """Stored issue as returned by the API."""
    id: str
    title: str
    description: str = ""
    category: Optional[str] = None
    priority: Optional[str] = None
    status: str = "open"
    location_text: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    photos: List[str] = Field(default_factory=list)
    contact_info: Optional[str] = None
    reporter_id: Optional[str] = None
    reporter_name: Optional[str] = None
    status_history: List[Dict] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class IssueView(BaseModel):
    """Dashboard projection of an issue (list, map and export)."""
    id: str
    title: str
    category: str = "Other"
    status: str = "low"
    location: str = ""
    description: str = ""
    urgency_score: int = 25
    created_at: Optional[str] = None
    reported_by: str = "Anonymous"
    coordinates: Optional[Coordinates] = None


class IssueStatusUpdate(BaseModel):
    status: str = Field(..., description="New workflow status")
    note: Optional[str] = Field(None, max_length=500)


class IssueFilters(BaseModel):
    """Dashboard filters; 'all' or empty disables a filter."""
    search: str = ""
    category: str = "all"
    status: str = "all"
    location: str = "all"
    date_range: str = "all"


class PhotoUploadResponse(BaseModel):
    path: str
    public_url: str


class IssueListResponse(BaseModel):
    issues: List[IssueView]
    count: int
    active_filter_count: int = 0
