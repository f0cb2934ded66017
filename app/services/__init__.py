"""Services package."""
from app.services.geo_locator import (
    GeoLocator,
    PositionProvider,
    StaticPositionProvider,
    ClientPositionProvider,
)
from app.services.site_catalog_service import SiteCatalogService, LIBRARY_CATEGORY_IDS
from app.services.live_status_service import LiveStatusService, OCCUPANCY_FIELDS
from app.services.timetable_service import TimetableService
from app.services.location_resolver import LocationResolver, load_location_table
from app.services.aggregation_service import (
    AggregationService,
    NEARBY_SITES_LIMIT,
    select_day_index,
)

__all__ = [
    "GeoLocator",
    "PositionProvider",
    "StaticPositionProvider",
    "ClientPositionProvider",
    "SiteCatalogService",
    "LIBRARY_CATEGORY_IDS",
    "LiveStatusService",
    "OCCUPANCY_FIELDS",
    "TimetableService",
    "LocationResolver",
    "load_location_table",
    "AggregationService",
    "NEARBY_SITES_LIMIT",
    "select_day_index",
]
