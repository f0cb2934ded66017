"""Dependency injection container for application components."""
import logging

from app.api import AffluencesAPIClient
from app.config import Settings
from app.handlers import LibraryHandler
from app.models import Position
from app.services import (
    AggregationService,
    GeoLocator,
    LiveStatusService,
    LocationResolver,
    SiteCatalogService,
    StaticPositionProvider,
    TimetableService,
)

logger = logging.getLogger(__name__)


class Container:
    """Dependency injection container.

    Initializes and wires up all application dependencies.
    """

    def __init__(self, settings: Settings):
        """Initialize container with all dependencies.

        Args:
            settings: Application settings

        Raises:
            OSError, ValueError: If the location table cannot be loaded
        """
        logger.info("[Container] Initializing container")
        self.settings = settings

        # Initialize Affluences API client
        self.affluences_api = AffluencesAPIClient(
            catalog_base_url=settings.catalog_base_url,
            site_base_url=settings.site_base_url,
            timeout=settings.affluences_timeout_seconds,
        )

        # Static building table, loaded once and read-only afterwards
        locations_path = settings.get_resource_path(settings.locations_resource)
        self.location_resolver = LocationResolver.from_file(locations_path)

        # Geolocation with the configured device fix, if any
        device_position = None
        if settings.device_lat is not None and settings.device_lng is not None:
            device_position = Position(lat=settings.device_lat, lng=settings.device_lng)
        else:
            logger.info("[Container] No device position configured, fallback will be used")

        self.geo_locator = GeoLocator(
            fallback=Position(lat=settings.fallback_lat, lng=settings.fallback_lng),
            provider=StaticPositionProvider(device_position),
            fix_timeout=settings.location_fix_timeout_seconds,
        )

        # Initialize services
        self.site_catalog_service = SiteCatalogService(
            self.affluences_api,
            category_ids=settings.library_category_ids,
            default_campus=settings.default_campus_label,
        )
        self.live_status_service = LiveStatusService(self.affluences_api)
        self.timetable_service = TimetableService(self.affluences_api)
        self.aggregation_service = AggregationService(
            self.geo_locator,
            self.site_catalog_service,
            self.live_status_service,
            self.timetable_service,
            nearby_limit=settings.nearby_sites_limit,
        )

        # Initialize handlers
        self.library_handler = LibraryHandler(
            self.aggregation_service,
            self.live_status_service,
            self.location_resolver,
        )

        logger.info("[Container] Container initialized successfully")

    async def shutdown(self):
        """Clean up resources on shutdown."""
        logger.info("[Container] Shutting down container")
        try:
            await self.affluences_api.close()
            logger.info("[Container] Affluences API client closed")
        except Exception as e:
            logger.error(f"[Container] Error closing Affluences API client: {e}")
