"""Library and location handler for HTTP requests."""
import logging
from typing import Optional

from app.models import (
    CourseLocationRequest,
    LiveStatus,
    LocationMatch,
    NearbySitesResult,
    WeekView,
)
from app.services import (
    AggregationService,
    ClientPositionProvider,
    LiveStatusService,
    LocationResolver,
)

logger = logging.getLogger(__name__)


class LibraryHandler:
    """Handler for library discovery and location requests."""

    def __init__(
        self,
        aggregation_service: AggregationService,
        live_status_service: LiveStatusService,
        location_resolver: LocationResolver,
    ):
        """Initialize library handler.

        Args:
            aggregation_service: Nearby sites and timetable orchestration
            live_status_service: Single-site live status
            location_resolver: Room/building coordinate lookup
        """
        self.aggregation_service = aggregation_service
        self.live_status_service = live_status_service
        self.location_resolver = location_resolver

    def ping(self) -> dict[str, str]:
        return {"status": "pong"}

    async def get_nearby_libraries(
        self, lat: Optional[float] = None, lng: Optional[float] = None
    ) -> NearbySitesResult:
        """Nearby libraries around the client's fix, or the configured position.

        A fix is only used when both coordinates are given.
        """
        provider = None
        if lat is not None and lng is not None:
            provider = ClientPositionProvider(lat, lng)
        return await self.aggregation_service.load_nearby_sites(provider)

    async def get_live_status(self, slug: str) -> LiveStatus:
        """Live status of one site, or the optimistic default when unavailable."""
        status = await self.live_status_service.fetch_status(slug)
        return status or LiveStatus.unknown()

    async def get_week(self, slug: str, week_offset: int = 0) -> WeekView:
        return await self.aggregation_service.load_week(slug, week_offset)

    def resolve_location(self, key: str) -> Optional[LocationMatch]:
        return self.location_resolver.resolve_exact(key)

    def search_locations(self, text: str) -> list[LocationMatch]:
        return self.location_resolver.resolve_in_text(text)

    def resolve_course_location(self, request: CourseLocationRequest) -> list[LocationMatch]:
        """Locations of a course from its room (explicit or from the description) and subject."""
        room_line = request.room
        if room_line is None:
            room_line = LocationResolver.room_line_from_description(request.description)
        return self.location_resolver.resolve_course(room_line, request.subject)
