"""Best-effort user position with a fixed fallback coordinate."""
import asyncio
import logging
from typing import Optional, Protocol

from app.metrics import LOCATION_FALLBACKS_TOTAL
from app.models import LocationFix, Position

logger = logging.getLogger(__name__)


class PositionProvider(Protocol):
    """Source of device positions."""

    async def request_permission(self) -> bool:
        ...

    async def last_known_position(self) -> Optional[Position]:
        ...

    async def current_position(self) -> Optional[Position]:
        ...


class StaticPositionProvider:
    """Provider backed by a configured fix (or none at all)."""

    def __init__(self, position: Optional[Position] = None, permission: bool = True):
        self.position = position
        self.permission = permission

    async def request_permission(self) -> bool:
        return self.permission

    async def last_known_position(self) -> Optional[Position]:
        return self.position

    async def current_position(self) -> Optional[Position]:
        return self.position


class ClientPositionProvider:
    """Fix reported by the calling client; sharing it implies permission."""

    def __init__(self, lat: float, lng: float):
        self.position = Position(lat=lat, lng=lng)

    async def request_permission(self) -> bool:
        return True

    async def last_known_position(self) -> Optional[Position]:
        return self.position

    async def current_position(self) -> Optional[Position]:
        return self.position


class GeoLocator:
    """Resolves a usable position, never failing.

    Order: permission check, last-known position, fresh fix within
    `fix_timeout` seconds, then the fallback coordinate. The locator holds no
    per-request state; `locate` returns each call's flags with its position.
    """

    def __init__(
        self,
        fallback: Position,
        provider: Optional[PositionProvider] = None,
        fix_timeout: float = 5.0,
    ):
        self.fallback = fallback
        self.provider = provider or StaticPositionProvider()
        self.fix_timeout = fix_timeout

    async def resolve(self, provider: Optional[PositionProvider] = None) -> Position:
        """Resolve the user position, falling back to the reference campus point."""
        fix = await self.locate(provider)
        return fix.position

    async def locate(self, provider: Optional[PositionProvider] = None) -> LocationFix:
        """Resolve the user position along with the denied/degraded flags."""
        provider = provider or self.provider

        try:
            granted = await provider.request_permission()
        except Exception as e:
            logger.error(f"[GeoLocator] Permission check failed: {e}")
            granted = False

        if not granted:
            logger.warning("[GeoLocator] Location permission denied, using fallback position")
            LOCATION_FALLBACKS_TOTAL.labels(reason="permission_denied").inc()
            return LocationFix(position=self.fallback, location_denied=True, location_degraded=True)

        position = await self._last_known(provider)
        if position is None:
            position = await self._fresh_fix(provider)

        if position is None:
            logger.warning("[GeoLocator] No position fix available, using fallback position")
            LOCATION_FALLBACKS_TOTAL.labels(reason="no_fix").inc()
            return LocationFix(position=self.fallback, location_degraded=True)

        logger.debug(f"[GeoLocator] Resolved position lat={position.lat:.5f}, lng={position.lng:.5f}")
        return LocationFix(position=position)

    async def _last_known(self, provider: PositionProvider) -> Optional[Position]:
        try:
            return await provider.last_known_position()
        except Exception as e:
            logger.error(f"[GeoLocator] Last known position lookup failed: {e}")
            return None

    async def _fresh_fix(self, provider: PositionProvider) -> Optional[Position]:
        try:
            return await asyncio.wait_for(provider.current_position(), timeout=self.fix_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[GeoLocator] No fresh fix within {self.fix_timeout}s")
            return None
        except Exception as e:
            logger.error(f"[GeoLocator] Fresh position fix failed: {e}")
            return None
