"""Nearby library catalog: filtering and normalization of provider records."""
import logging
import math
from typing import Iterable, Optional

import httpx
from pydantic import ValidationError

from app.api import AffluencesAPIClient
from app.metrics import CATALOG_RECORDS_SKIPPED, CATALOG_SITES_RETURNED
from app.models import CatalogSiteRecord, Position, SiteInfo
from app.utils import haversine_km

logger = logging.getLogger(__name__)

# 1 = public library, 20 = university library
LIBRARY_CATEGORY_IDS = frozenset({1, 20})

DEFAULT_CAMPUS_LABEL = "Campus"


class SiteCatalogService:
    """Fetches library sites around a position from the Affluences catalog."""

    def __init__(
        self,
        affluences_api: AffluencesAPIClient,
        category_ids: Iterable[int] = LIBRARY_CATEGORY_IDS,
        default_campus: str = DEFAULT_CAMPUS_LABEL,
    ):
        """Initialize catalog service.

        Args:
            affluences_api: Affluences API client
            category_ids: Catalog category ids considered libraries
            default_campus: Campus label used when a record has no city
        """
        self.affluences_api = affluences_api
        self.category_ids = frozenset(category_ids)
        self.default_campus = default_campus

    async def fetch_nearby(self, position: Optional[Position], limit: int) -> list[SiteInfo]:
        """Fetch library sites near a position.

        Provider order is kept (it is already sorted by relevance/distance).
        Failures are logged and yield an empty list.

        Args:
            position: Search position
            limit: Maximum number of sites returned

        Returns:
            At most `limit` sites, unique by id
        """
        if position is None:
            logger.warning("[SiteCatalogService] No position given, returning empty catalog")
            return []

        try:
            records = await self.affluences_api.search_sites(position.lat, position.lng)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[SiteCatalogService] Catalog fetch failed: {e}")
            CATALOG_SITES_RETURNED.set(0)
            return []

        sites = self.normalize(records, position, limit)

        logger.info(
            f"[SiteCatalogService] Catalog returned {len(records)} records, "
            f"kept {len(sites)} libraries (limit={limit})"
        )
        CATALOG_SITES_RETURNED.set(len(sites))
        return sites

    def normalize(
        self, records: list[dict], position: Optional[Position], limit: int
    ) -> list[SiteInfo]:
        """Filter raw records to libraries and map them to SiteInfo.

        Truncation happens after filtering and de-duplication so that
        discarded records never take a slot.
        """
        if limit <= 0:
            return []

        seen_ids: set[str] = set()
        sites: list[SiteInfo] = []

        for raw in records:
            try:
                record = CatalogSiteRecord.model_validate(raw)
            except ValidationError as e:
                logger.debug(f"[SiteCatalogService] Skipping malformed record: {e}")
                CATALOG_RECORDS_SKIPPED.labels(reason="malformed").inc()
                continue

            if not self.is_library(record):
                CATALOG_RECORDS_SKIPPED.labels(reason="not_library").inc()
                continue

            site = self._to_site_info(record, position)
            if site is None:
                continue

            if site.id in seen_ids:
                logger.debug(f"[SiteCatalogService] Skipping duplicate site ID={site.id}")
                CATALOG_RECORDS_SKIPPED.labels(reason="duplicate_id").inc()
                continue

            seen_ids.add(site.id)
            sites.append(site)
            if len(sites) >= limit:
                break

        return sites

    def is_library(self, record: CatalogSiteRecord) -> bool:
        """Whether any of the record's categories is an allowed library category."""
        return not self.category_ids.isdisjoint(record.category_ids)

    def _to_site_info(
        self, record: CatalogSiteRecord, position: Optional[Position]
    ) -> Optional[SiteInfo]:
        if not record.slug:
            logger.debug(f"[SiteCatalogService] Skipping site ID={record.id} without slug")
            CATALOG_RECORDS_SKIPPED.labels(reason="empty_slug").inc()
            return None

        lat, lng = record.latitude, record.longitude
        if lat is None or lng is None:
            logger.debug(f"[SiteCatalogService] Skipping site {record.slug} without coordinates")
            CATALOG_RECORDS_SKIPPED.labels(reason="no_coordinates").inc()
            return None

        return SiteInfo(
            id=record.id or record.slug,
            name=record.primary_name,
            campus=record.city or self.default_campus,
            lat=lat,
            lng=lng,
            slug=record.slug,
            distance_km=self._distance_km(record, lat, lng, position),
        )

    @staticmethod
    def _distance_km(
        record: CatalogSiteRecord, lat: float, lng: float, position: Optional[Position]
    ) -> Optional[float]:
        """Provider distance in km, or the great-circle distance when it is unusable."""
        estimated = record.estimated_distance
        if estimated is not None and math.isfinite(estimated) and estimated >= 0:
            return estimated / 1000

        if position is None:
            return None
        return haversine_km(position.lat, position.lng, lat, lng)
