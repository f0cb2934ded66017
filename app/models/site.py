"""Library site models using Pydantic."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SiteCategory(BaseModel):
    """Category tag attached to a catalog record."""
    id: Optional[int] = None


class SiteAddress(BaseModel):
    city: Optional[str] = None


class SiteCoordinates(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class SiteLocation(BaseModel):
    """Location block of a catalog record (address and coordinates)."""
    address: Optional[SiteAddress] = None
    coordinates: Optional[SiteCoordinates] = None


class CatalogSiteRecord(BaseModel):
    """Single site from POST /sites/map response.

    Every field is optional: the provider omits blocks freely and the
    normalization step decides what a usable record is.
    """
    id: str = ""
    primary_name: str = ""
    secondary_name: Optional[str] = None
    location: Optional[SiteLocation] = None
    categories: list[SiteCategory] = Field(default_factory=list)
    slug: str = ""
    estimated_distance: Optional[float] = None  # Meters

    @field_validator("id", mode="before")
    @classmethod
    def convert_id_to_string(cls, v: Any) -> str:
        """The catalog returns numeric ids for some sites and strings for others."""
        if v is None:
            return ""
        return str(v)

    @field_validator("primary_name", "slug", mode="before")
    @classmethod
    def convert_none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("categories", mode="before")
    @classmethod
    def convert_none_categories(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def category_ids(self) -> set[int]:
        return {c.id for c in self.categories if c.id is not None}

    @property
    def city(self) -> Optional[str]:
        if self.location and self.location.address:
            return self.location.address.city
        return None

    @property
    def latitude(self) -> Optional[float]:
        if self.location and self.location.coordinates:
            return self.location.coordinates.latitude
        return None

    @property
    def longitude(self) -> Optional[float]:
        if self.location and self.location.coordinates:
            return self.location.coordinates.longitude
        return None


class SiteInfo(BaseModel):
    """Normalized library site.

    Identity is `id`; `slug` is the key for live status and timetable lookups.
    `distance_km` is None only when no position was available.
    """
    id: str
    name: str
    campus: str
    lat: float
    lng: float
    slug: str = Field(min_length=1)
    distance_km: Optional[float] = Field(default=None, ge=0)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"SiteInfo(id={self.id}, slug={self.slug}, name={self.name})"
