"""Nearby sites with live status, and day-indexed timetable views."""
import asyncio
import logging
import time
from typing import Optional

from app.metrics import LIVE_STATUS_FETCH_RESULTS, NEARBY_SITES_LOAD_DURATION_SECONDS
from app.models import LiveStatus, NearbySitesResult, SiteInfo, TimetableEntry, WeekView
from app.services.geo_locator import GeoLocator, PositionProvider
from app.services.live_status_service import LiveStatusService
from app.services.site_catalog_service import SiteCatalogService
from app.services.timetable_service import TimetableService

logger = logging.getLogger(__name__)

NEARBY_SITES_LIMIT = 15


class AggregationService:
    """Composes geolocation, catalog, live status and timetable lookups.

    Every call re-fetches; results are tagged with their request parameters
    and sequencing concurrent calls is left to the caller.
    """

    def __init__(
        self,
        geo_locator: GeoLocator,
        site_catalog: SiteCatalogService,
        live_status: LiveStatusService,
        timetable: TimetableService,
        nearby_limit: int = NEARBY_SITES_LIMIT,
    ):
        """Initialize aggregation service.

        Args:
            geo_locator: Position resolver
            site_catalog: Nearby catalog service
            live_status: Per-site live status service
            timetable: Weekly timetable service
            nearby_limit: Maximum number of sites in a nearby result
        """
        self.geo_locator = geo_locator
        self.site_catalog = site_catalog
        self.live_status = live_status
        self.timetable = timetable
        self.nearby_limit = nearby_limit
        self._loads_in_flight = 0

    @property
    def is_loading(self) -> bool:
        return self._loads_in_flight > 0

    async def load_nearby_sites(
        self, provider: Optional[PositionProvider] = None
    ) -> NearbySitesResult:
        """Load nearby library sites and their live status.

        Never raises. Sites whose status could not be loaded are absent from
        `status`, which callers read as "open, occupancy unknown".

        Args:
            provider: Position source for this request (defaults to the locator's)

        Returns:
            NearbySitesResult
        """
        self._loads_in_flight += 1
        start_time = time.perf_counter()
        fix = None
        try:
            fix = await self.geo_locator.locate(provider)
            sites = await self.site_catalog.fetch_nearby(fix.position, self.nearby_limit)
            status = await self._fetch_all_statuses(sites)

            logger.info(
                f"[AggregationService] Loaded {len(sites)} sites, "
                f"{len(status)} with live status (degraded_location={fix.location_degraded})"
            )
            return NearbySitesResult(
                sites=sites,
                status=status,
                position=fix.position,
                location_degraded=fix.location_degraded,
            )
        except Exception as e:
            logger.exception(f"[AggregationService] Nearby sites load failed: {e}")
            return NearbySitesResult(location_degraded=fix is None or fix.location_degraded)
        finally:
            self._loads_in_flight -= 1
            NEARBY_SITES_LOAD_DURATION_SECONDS.observe(time.perf_counter() - start_time)

    async def _fetch_all_statuses(self, sites: list[SiteInfo]) -> dict[str, LiveStatus]:
        """Fetch every site's live status concurrently and keep the successes.

        Waits for all fetches to settle; one failing site never cancels the others.
        """
        if not sites:
            return {}

        results = await asyncio.gather(
            *(self.live_status.fetch_status(site.slug) for site in sites),
            return_exceptions=True,
        )

        status: dict[str, LiveStatus] = {}
        for site, result in zip(sites, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(
                    f"[AggregationService] Live status for {site.slug} raised: {result}"
                )
                LIVE_STATUS_FETCH_RESULTS.labels(result="error").inc()
                continue
            if result is None:
                LIVE_STATUS_FETCH_RESULTS.labels(result="absent").inc()
                continue
            status[site.id] = result

        return status

    async def load_week(self, slug: str, week_offset: int = 0) -> WeekView:
        """Load one week of a site's timetable with the initially selected day.

        Args:
            slug: Site slug
            week_offset: 0 = current week, negative = past, positive = future

        Returns:
            WeekView tagged with (slug, week_offset)
        """
        entries = await self.timetable.fetch_week(slug, week_offset)
        return WeekView(
            slug=slug,
            week_offset=week_offset,
            entries=entries,
            selected_index=select_day_index(entries, week_offset),
        )


def select_day_index(entries: list[TimetableEntry], week_offset: int) -> int:
    """Index of the day focused when a week is shown.

    Current week: the entry flagged as today, else the first day.
    Any other week: always the first day.
    """
    today_indexes = [index for index, entry in enumerate(entries) if entry.is_today]

    if week_offset != 0:
        if today_indexes:
            logger.warning(
                f"[AggregationService] Week offset {week_offset} has a day flagged as today, ignoring it"
            )
        return 0

    if len(today_indexes) > 1:
        logger.warning(
            f"[AggregationService] {len(today_indexes)} days flagged as today, selecting the first"
        )
    return today_indexes[0] if today_indexes else 0
