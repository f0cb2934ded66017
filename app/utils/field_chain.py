"""Ordered fallback over alternative provider field names."""
from typing import Any, Iterable, Sequence

# Sentinel for "no accessor produced a value"
MISSING = object()


class FieldChain:
    """Reads the first present value from an ordered list of key paths.

    A path is a sequence of keys walked into nested dicts. A value is
    present when every key exists and the final value is not None, so
    explicit nulls fall through to the next path.

    Example:
        chain = FieldChain(("liveAttendance", "percentage"), ("liveAttendance", "occupancy"))
        chain.first({"liveAttendance": {"occupancy": 40}})  # -> 40
    """

    def __init__(self, *paths: Sequence[str]):
        if not paths:
            raise ValueError("FieldChain needs at least one path")
        self.paths: tuple[tuple[str, ...], ...] = tuple(tuple(p) for p in paths)

    def first(self, payload: Any, default: Any = None) -> Any:
        """Return the value of the first path present in payload, else default."""
        for path in self.paths:
            value = self._walk(payload, path)
            if value is not MISSING:
                return value
        return default

    def source(self, payload: Any) -> tuple[str, ...] | None:
        """Return the path that supplied the value, or None."""
        for path in self.paths:
            if self._walk(payload, path) is not MISSING:
                return path
        return None

    @staticmethod
    def _walk(payload: Any, path: Iterable[str]) -> Any:
        current = payload
        for key in path:
            if not isinstance(current, dict) or key not in current:
                return MISSING
            current = current[key]
        return MISSING if current is None else current

    def __repr__(self) -> str:
        joined = " -> ".join(".".join(p) for p in self.paths)
        return f"FieldChain({joined})"
