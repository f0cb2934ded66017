"""Geographic position models."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Position(BaseModel):
    """A latitude/longitude pair in decimal degrees."""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    model_config = ConfigDict(frozen=True)


class LocationFix(BaseModel):
    """Outcome of a geolocation attempt.

    location_degraded is True whenever the fallback coordinate was used,
    location_denied only when the permission check failed.
    """
    position: Position
    location_denied: bool = False
    location_degraded: bool = False

    model_config = ConfigDict(frozen=True)


class LocationMatch(BaseModel):
    """Map coordinate resolved from a room or building reference."""
    lat: float
    lng: float
    title: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def coordinates(self) -> tuple[float, float]:
        return (self.lat, self.lng)
