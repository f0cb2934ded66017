"""Course location request model."""
from typing import Optional

from pydantic import BaseModel


class CourseLocationRequest(BaseModel):
    """Course fields used to place a course on the map.

    `room` wins over the room line extracted from `description`.
    """
    description: str = ""
    room: Optional[str] = None
    subject: str = ""
