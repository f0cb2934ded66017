"""Per-site live status (open state and occupancy)."""
import logging
from typing import Any, Optional

import httpx

from app.api import AffluencesAPIClient
from app.metrics import LIVE_STATUS_FETCH_RESULTS, OCCUPANCY_OUT_OF_RANGE_TOTAL
from app.models import LiveDataResponse, LiveStatus
from app.utils import FieldChain

logger = logging.getLogger(__name__)

# Sites report attendance under either name; "percentage" wins when both exist
OCCUPANCY_FIELDS = FieldChain(("percentage",), ("occupancy",))


class LiveStatusService:
    """Fetches the live status of one site by slug."""

    def __init__(
        self,
        affluences_api: AffluencesAPIClient,
        occupancy_fields: FieldChain = OCCUPANCY_FIELDS,
    ):
        self.affluences_api = affluences_api
        self.occupancy_fields = occupancy_fields

    async def fetch_status(self, slug: str) -> Optional[LiveStatus]:
        """Fetch current live status for a site.

        Args:
            slug: Site slug

        Returns:
            LiveStatus, or None when the status could not be loaded
        """
        try:
            response = await self.affluences_api.get_live_data(slug)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[LiveStatusService] Live data fetch failed for {slug}: {e}")
            LIVE_STATUS_FETCH_RESULTS.labels(result="error").inc()
            return None

        status = self.to_live_status(slug, response)
        LIVE_STATUS_FETCH_RESULTS.labels(result="ok").inc()
        return status

    def to_live_status(self, slug: str, response: LiveDataResponse) -> LiveStatus:
        """Map a live-data payload to LiveStatus with explicit defaults."""
        payload = response.data
        status = payload.status if payload else None
        attendance = payload.liveAttendance if payload else None

        is_open = status.isOpen if status and status.isOpen is not None else False

        occupancy = None
        if attendance:
            occupancy = self._coerce_occupancy(slug, self.occupancy_fields.first(attendance))

        return LiveStatus(
            is_open=is_open,
            occupancy_rate=occupancy,
            closing_time=status.closingAt if status else None,
            opening_text=status.openingText if status else None,
        )

    @staticmethod
    def _coerce_occupancy(slug: str, value: Any) -> Optional[int]:
        """Normalize an occupancy reading to an int.

        Out-of-range values are passed through untouched and reported.
        """
        if value is None or isinstance(value, bool):
            return None
        try:
            rate = int(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"[LiveStatusService] Unreadable occupancy {value!r} for {slug}")
            return None

        if not 0 <= rate <= 100:
            logger.warning(
                f"[LiveStatusService] Occupancy {rate} outside [0, 100] for {slug}"
            )
            OCCUPANCY_OUT_OF_RANGE_TOTAL.inc()

        return rate
