"""Resolution of room and building references to map coordinates."""
import json
import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

from app.metrics import LOCATION_RESOLUTION_RESULTS
from app.models import LocationMatch

logger = logging.getLogger(__name__)

# Room codes are "<building>/<room>" or "<building>.<floor>.<room>"
_ROOM_SECTION_SEPARATORS = re.compile(r"[/.]")

# Course descriptions carry the room on their third line
ROOM_LINE_INDEX = 2


def load_location_table(path: Path) -> tuple[Mapping[str, LocationMatch], Mapping[str, str]]:
    """Load the building table from a JSON resource.

    Format: {"A22": {"lat": ..., "lng": ..., "title": "...", "aliases": [...]}}.
    Keys starting with "_" are comments.

    Returns:
        (read-only building -> LocationMatch mapping, read-only alias -> building mapping)

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not valid JSON or an entry lacks coordinates
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    entries: dict[str, LocationMatch] = {}
    aliases: dict[str, str] = {}

    for key, value in raw.items():
        if key.startswith("_"):
            continue
        if not isinstance(value, dict) or "lat" not in value or "lng" not in value:
            raise ValueError(f"Location entry {key!r} needs lat and lng")

        entries[key] = LocationMatch(
            lat=float(value["lat"]),
            lng=float(value["lng"]),
            title=value.get("title") or key,
        )
        for alias in value.get("aliases", []):
            aliases[alias] = key

    logger.info(
        f"[LocationResolver] Loaded {len(entries)} buildings and {len(aliases)} aliases from {path}"
    )
    return MappingProxyType(entries), MappingProxyType(aliases)


class LocationResolver:
    """Maps room codes and free text to known building coordinates.

    The table is immutable after construction and shared by all calls.
    """

    def __init__(
        self,
        entries: Mapping[str, LocationMatch],
        aliases: Optional[Mapping[str, str]] = None,
    ):
        self._entries = MappingProxyType(dict(entries))
        aliases = dict(aliases or {})

        unknown = [a for a, key in aliases.items() if key not in self._entries]
        if unknown:
            raise ValueError(f"Aliases point to unknown buildings: {unknown}")

        # Every building code is also a searchable token
        tokens = {key: key for key in self._entries}
        tokens.update(aliases)
        self._tokens = MappingProxyType({t.lower(): key for t, key in tokens.items()})
        self._pattern = self._compile(tokens)

    @classmethod
    def from_file(cls, path: Path) -> "LocationResolver":
        entries, aliases = load_location_table(path)
        return cls(entries, aliases)

    @property
    def entries(self) -> Mapping[str, LocationMatch]:
        return self._entries

    @staticmethod
    def _compile(tokens: Mapping[str, str]) -> Optional[re.Pattern]:
        if not tokens:
            return None
        # Longest first so "Amphi A29" wins over "A29" at the same offset
        ordered = sorted(tokens, key=len, reverse=True)
        alternation = "|".join(re.escape(t) for t in ordered)
        return re.compile(rf"(?<![\w])(?:{alternation})(?![\w])", re.IGNORECASE)

    @staticmethod
    def building_key(room: str) -> str:
        """Building part of a room code ("A22/103" -> "A22")."""
        return _ROOM_SECTION_SEPARATORS.split(room.strip(), maxsplit=1)[0].strip()

    def resolve_exact(self, key: str) -> Optional[LocationMatch]:
        """Look up the building of a room code in the table."""
        if not key:
            return None
        return self._entries.get(self.building_key(key))

    def resolve_in_text(self, text: str) -> list[LocationMatch]:
        """Find every known building mentioned in free text.

        Results follow the order of first occurrence and are de-duplicated
        by coordinate pair.
        """
        if not text or self._pattern is None:
            return []

        seen: set[tuple[float, float]] = set()
        matches: list[LocationMatch] = []

        for found in self._pattern.finditer(text):
            key = self._tokens.get(found.group(0).lower())
            if key is None:
                continue
            match = self._entries[key]
            if match.coordinates in seen:
                continue
            seen.add(match.coordinates)
            matches.append(match)

        return matches

    def resolve_course(self, room_line: str, subject: str = "") -> list[LocationMatch]:
        """Resolve where a course takes place.

        Tries, in order, the room code, the whole room line as text and then
        the subject as text. The first non-empty result is returned as is.
        """
        room_line = (room_line or "").strip()

        if room_line:
            exact = self.resolve_exact(room_line)
            if exact is not None:
                LOCATION_RESOLUTION_RESULTS.labels(strategy="exact").inc()
                return [exact]

            in_room = self.resolve_in_text(room_line)
            if in_room:
                LOCATION_RESOLUTION_RESULTS.labels(strategy="room_text").inc()
                return in_room

        in_subject = self.resolve_in_text(subject or "")
        if in_subject:
            LOCATION_RESOLUTION_RESULTS.labels(strategy="subject_text").inc()
            return in_subject

        LOCATION_RESOLUTION_RESULTS.labels(strategy="none").inc()
        logger.debug(f"[LocationResolver] No location for room={room_line!r} subject={subject!r}")
        return []

    @staticmethod
    def room_line_from_description(description: str) -> str:
        """Room line of a course description, empty when absent."""
        lines = (description or "").split("\n")
        if len(lines) <= ROOM_LINE_INDEX:
            return ""
        return lines[ROOM_LINE_INDEX].strip()
