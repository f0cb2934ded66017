"""Weekly timetable models using Pydantic."""
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class OpeningHours(BaseModel):
    """One opening window within a day (ISO datetime strings)."""
    opening_hour: str = Field(validation_alias=AliasChoices("openingHour", "opening_hour"))
    closing_hour: str = Field(validation_alias=AliasChoices("closingHour", "closing_hour"))

    model_config = ConfigDict(frozen=True)


class TimetableEntry(BaseModel):
    """A single day of a site's weekly timetable.

    Handles both scenarios:
    - Open day: one or more opening windows
    - Closed day: openingHours empty or absent
    """
    day: str
    is_today: bool = Field(default=False, validation_alias=AliasChoices("isToday", "is_today"))
    opening_hours: list[OpeningHours] = Field(
        default_factory=list,
        validation_alias=AliasChoices("openingHours", "opening_hours"),
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("is_today", mode="before")
    @classmethod
    def convert_none_to_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("opening_hours", mode="before")
    @classmethod
    def convert_none_hours(cls, v: Any) -> Any:
        """A day reported with null hours is a closed day."""
        return [] if v is None else v

    @property
    def is_closed(self) -> bool:
        """True when the site is closed all day."""
        return not self.opening_hours


class TimetableData(BaseModel):
    entries: list[TimetableEntry] = Field(default_factory=list)

    @field_validator("entries", mode="before")
    @classmethod
    def convert_none_entries(cls, v: Any) -> Any:
        return [] if v is None else v


class TimetableResponse(BaseModel):
    """Response from GET /sites/{slug}/timetables endpoint."""
    data: Optional[TimetableData] = None


class WeekView(BaseModel):
    """Timetable for one (slug, week_offset) pair with the initially focused day.

    Carries its request parameters so a caller can discard responses that
    belong to a superseded request.
    """
    slug: str
    week_offset: int
    entries: list[TimetableEntry] = Field(default_factory=list)
    selected_index: int = 0

    @property
    def selected_entry(self) -> Optional[TimetableEntry]:
        if 0 <= self.selected_index < len(self.entries):
            return self.entries[self.selected_index]
        return None
