"""Aggregated nearby-sites result model."""
from typing import Optional

from pydantic import BaseModel, Field

from app.models.live_status import LiveStatus
from app.models.position import Position
from app.models.site import SiteInfo


class NearbySitesResult(BaseModel):
    """Nearby library sites with their live status keyed by site id.

    Sites whose live status failed to load have no entry in `status`.
    """
    sites: list[SiteInfo] = Field(default_factory=list)
    status: dict[str, LiveStatus] = Field(default_factory=dict)
    position: Optional[Position] = None
    location_degraded: bool = False

    def status_for(self, site_id: str) -> LiveStatus:
        """Live status for a site, or the optimistic default when absent."""
        return self.status.get(site_id) or LiveStatus.unknown()
