"""Live status models using Pydantic."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class LiveDataStatus(BaseModel):
    """Status block of GET /sites/{slug}/live-data."""
    isOpen: Optional[bool] = None
    closingAt: Optional[str] = None
    openingText: Optional[str] = None


class LiveData(BaseModel):
    status: Optional[LiveDataStatus] = None
    # Kept raw: occupancy field names vary between sites
    liveAttendance: Optional[dict[str, Any]] = None


class LiveDataResponse(BaseModel):
    """Response from GET /sites/{slug}/live-data endpoint."""
    data: Optional[LiveData] = None


class LiveStatus(BaseModel):
    """Current open/closed state and occupancy of one site.

    occupancy_rate None means crowding is unknown while the open state is
    known. A site with no LiveStatus at all is "unknown" and is shown as open.
    """
    is_open: bool
    occupancy_rate: Optional[int] = None
    closing_time: Optional[str] = None
    opening_text: Optional[str] = None
    known: bool = Field(default=True, description="False for the optimistic default")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def unknown(cls) -> "LiveStatus":
        """Default for sites whose live status could not be loaded."""
        return cls(is_open=True, occupancy_rate=None, known=False)
