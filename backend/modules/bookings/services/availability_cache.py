# backend/modules/bookings/services/availability_cache.py

"""
Short-lived memoization of availability answers.

Keys are tuples of ``(namespace, venue_id, party_size, start_date,
end_date, extra)`` so that a booking change on one date can drop every
entry whose date range covers it.
"""

from datetime import date
from typing import Any, Hashable, Optional, Tuple
import logging

from core.config import Settings, get_settings
from core.memory_cache import TTLCache

logger = logging.getLogger(__name__)

DATE_NAMESPACE = "date"
SLOT_NAMESPACE = "slot"
RANGE_NAMESPACE = "range"
JOIN_GROUP_NAMESPACE = "joined"

CacheKey = Tuple[str, str, int, date, date, Hashable]


class AvailabilityCache:
    """Availability cache shared by the services of one process"""

    def __init__(self, settings: Optional[Settings] = None, backend: Optional[TTLCache] = None):
        self.settings = settings or get_settings()
        self.enabled = self.settings.availability_cache_enabled
        # An empty TTLCache is falsy, so test for None explicitly
        if backend is None:
            backend = TTLCache(
                max_size=self.settings.availability_cache_max_size,
                ttl_seconds=self.settings.time_slot_ttl_seconds,
            )
        self.backend = backend
        self._ttls = {
            DATE_NAMESPACE: self.settings.date_availability_ttl_seconds,
            SLOT_NAMESPACE: self.settings.time_slot_ttl_seconds,
            JOIN_GROUP_NAMESPACE: self.settings.time_slot_ttl_seconds,
            RANGE_NAMESPACE: self.settings.date_range_ttl_seconds,
        }

    @staticmethod
    def make_key(
        namespace: str,
        venue_id: str,
        party_size: int,
        start_date: date,
        end_date: Optional[date] = None,
        extra: Hashable = None,
    ) -> CacheKey:
        return (namespace, venue_id, party_size, start_date, end_date or start_date, extra)

    async def get(self, key: CacheKey) -> Optional[Any]:
        if not self.enabled:
            return None
        return await self.backend.get(key)

    async def set(self, key: CacheKey, value: Any) -> None:
        if not self.enabled:
            return
        await self.backend.set(key, value, ttl=self._ttls.get(key[0]))

    async def invalidate(self, venue_id: str, booking_date: date) -> int:
        """Drop every cached answer for the venue that covers the date."""

        def covers(key) -> bool:
            return key[1] == venue_id and key[3] <= booking_date <= key[4]

        removed = await self.backend.delete_where(covers)
        if removed:
            logger.debug(f"Invalidated {removed} availability entries for {venue_id} on {booking_date}")
        return removed

    async def purge_expired(self) -> int:
        return await self.backend.purge_expired()

    async def clear(self) -> None:
        await self.backend.clear()

    def get_stats(self):
        return self.backend.get_stats()
