"""Data models package for the library finder service."""
from app.models.position import (
    Position,
    LocationFix,
    LocationMatch,
)
from app.models.site import (
    SiteInfo,
    CatalogSiteRecord,
    SiteCategory,
    SiteLocation,
    SiteAddress,
    SiteCoordinates,
)
from app.models.live_status import (
    LiveStatus,
    LiveDataResponse,
    LiveData,
    LiveDataStatus,
)
from app.models.timetable import (
    TimetableEntry,
    OpeningHours,
    TimetableResponse,
    TimetableData,
    WeekView,
)
from app.models.aggregate import NearbySitesResult
from app.models.course import CourseLocationRequest

__all__ = [
    # Position models
    "Position",
    "LocationFix",
    "LocationMatch",
    # Site models
    "SiteInfo",
    "CatalogSiteRecord",
    "SiteCategory",
    "SiteLocation",
    "SiteAddress",
    "SiteCoordinates",
    # Live status models
    "LiveStatus",
    "LiveDataResponse",
    "LiveData",
    "LiveDataStatus",
    # Timetable models
    "TimetableEntry",
    "OpeningHours",
    "TimetableResponse",
    "TimetableData",
    "WeekView",
    # Aggregate models
    "NearbySitesResult",
    # Request models
    "CourseLocationRequest",
]
