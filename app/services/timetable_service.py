"""Weekly opening-hours timetable of a site."""
import logging

import httpx

from app.api import AffluencesAPIClient
from app.metrics import TIMETABLE_FETCH_RESULTS
from app.models import TimetableEntry

logger = logging.getLogger(__name__)


class TimetableService:
    """Fetches a site's timetable for a week relative to the provider's current week."""

    def __init__(self, affluences_api: AffluencesAPIClient):
        self.affluences_api = affluences_api

    async def fetch_week(self, slug: str, week_offset: int = 0) -> list[TimetableEntry]:
        """Fetch the 7 day entries of one week.

        Args:
            slug: Site slug
            week_offset: 0 = current week, negative = past, positive = future

        Returns:
            Entries in provider order, or an empty list on failure
        """
        try:
            response = await self.affluences_api.get_timetables(slug, week_offset)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                f"[TimetableService] Timetable fetch failed for {slug} "
                f"(week_offset={week_offset}): {e}"
            )
            TIMETABLE_FETCH_RESULTS.labels(result="error").inc()
            return []

        entries = response.data.entries if response.data else []
        TIMETABLE_FETCH_RESULTS.labels(result="ok" if entries else "empty").inc()
        logger.debug(
            f"[TimetableService] {slug} week_offset={week_offset}: {len(entries)} entries"
        )
        return entries
