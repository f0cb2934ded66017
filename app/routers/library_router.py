"""FastAPI routes for library and location endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from app.models import (
    CourseLocationRequest,
    LiveStatus,
    LocationMatch,
    NearbySitesResult,
    WeekView,
)

logger = logging.getLogger(__name__)

# Create router at module level
router = APIRouter()

# Global handler reference - set during startup
_library_handler = None


def set_library_handler(handler):
    """Set the library handler instance (called during startup)."""
    global _library_handler
    _library_handler = handler
    logger.info("[LibraryRouter] Handler injected successfully")


def get_handler():
    """Get the library handler, raising error if not initialized."""
    if _library_handler is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return _library_handler


@router.get(
    "/v1/libraries/nearby",
    response_model=NearbySitesResult,
    summary="Get nearby libraries",
    description="Libraries near the client (or the campus fallback) with live status",
)
async def get_nearby_libraries(
    lat: Optional[float] = Query(None, description="Client latitude", ge=-90, le=90),
    lng: Optional[float] = Query(None, description="Client longitude", ge=-180, le=180),
) -> NearbySitesResult:
    """Get nearby libraries with live status."""
    handler = get_handler()
    if (lat is None) != (lng is None):
        raise HTTPException(status_code=400, detail="lat and lng must be given together")
    try:
        return await handler.get_nearby_libraries(lat, lng)
    except Exception as e:
        logger.error(f"[LibraryRouter] Error in get_nearby_libraries: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/v1/libraries/{slug}/live",
    response_model=LiveStatus,
    summary="Get live status",
    description="Current open state and occupancy of one library",
)
async def get_live_status(slug: str) -> LiveStatus:
    handler = get_handler()
    try:
        return await handler.get_live_status(slug)
    except Exception as e:
        logger.error(f"[LibraryRouter] Error in get_live_status: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/v1/libraries/{slug}/timetable",
    response_model=WeekView,
    summary="Get weekly timetable",
    description="Opening hours for one week with the initially selected day",
)
async def get_timetable(
    slug: str,
    week_offset: int = Query(0, description="0 = current week, -1 = last week, 1 = next week"),
) -> WeekView:
    handler = get_handler()
    try:
        return await handler.get_week(slug, week_offset)
    except Exception as e:
        logger.error(f"[LibraryRouter] Error in get_timetable: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/v1/locations",
    response_model=list[LocationMatch],
    summary="Search locations in text",
    description="Every known building mentioned in free text, in order of appearance",
)
def search_locations(
    text: str = Query(..., description="Free text to scan", min_length=1),
) -> list[LocationMatch]:
    return get_handler().search_locations(text)


@router.post(
    "/v1/locations/course",
    response_model=list[LocationMatch],
    summary="Locate a course",
    description="Resolve a course's room, falling back to text scans of the room line and subject",
)
def locate_course(request: CourseLocationRequest) -> list[LocationMatch]:
    return get_handler().resolve_course_location(request)


@router.get(
    "/v1/locations/{key:path}",
    response_model=LocationMatch,
    summary="Resolve a room code",
    description="Coordinates of the building of a room code (e.g. A22/103)",
)
def resolve_location(key: str) -> LocationMatch:
    match = get_handler().resolve_location(key)
    if match is None:
        raise HTTPException(status_code=404, detail=f"Unknown location: {key}")
    return match


@router.get(
    "/ping",
    summary="Health check",
    description="Health check endpoint",
)
def ping() -> dict[str, str]:
    """Health check endpoint."""
    handler = get_handler()
    return handler.ping()
