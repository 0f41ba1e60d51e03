"""
Mutual exclusion for allocation writes.

Uses a Redis lock when Redis is configured so that several API workers
serialize on the same key; otherwise falls back to in-process asyncio locks.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

import redis.asyncio as redis
from redis.exceptions import LockError, RedisError

logger = logging.getLogger(__name__)


class AllocationLockManager:
    """Hands out named locks held for the duration of an allocation"""

    def __init__(
        self,
        redis_url: Optional[str] = None,
        timeout_seconds: int = 10,
        key_prefix: str = "booking",
    ):
        self.redis_url = redis_url
        self.timeout_seconds = timeout_seconds
        self.key_prefix = key_prefix
        self.redis_client = None
        self._local_locks: Dict[str, asyncio.Lock] = {}
        # Holders plus waiters per local lock; the lock is dropped at zero
        self._local_users: Dict[str, int] = {}

    async def initialize(self):
        """Initialize Redis connection."""
        if not self.redis_url:
            logger.info("Allocation locks using in-process mode")
            return
        try:
            self.redis_client = redis.from_url(self.redis_url)
            await self.redis_client.ping()
            logger.info("Allocation locks initialized with Redis")
        except RedisError as e:
            logger.error(f"Failed to connect to Redis for allocation locks: {e}")
            self.redis_client = None

    async def close(self):
        if self.redis_client is not None:
            await self.redis_client.aclose()
            self.redis_client = None

    @staticmethod
    def slot_key(venue_id: str, booking_date) -> str:
        return f"alloc:{venue_id}:{booking_date}"

    @asynccontextmanager
    async def hold(self, name: str):
        """Acquire the named lock, raising TimeoutError if it cannot be taken."""
        if self.redis_client is None:
            lock = self._local_locks.setdefault(name, asyncio.Lock())
            self._local_users[name] = self._local_users.get(name, 0) + 1
            try:
                try:
                    await asyncio.wait_for(lock.acquire(), timeout=self.timeout_seconds)
                except asyncio.TimeoutError:
                    raise TimeoutError(f"Could not acquire lock: {name}")
                try:
                    yield
                finally:
                    lock.release()
            finally:
                self._local_users[name] -= 1
                if not self._local_users[name]:
                    del self._local_users[name]
                    self._local_locks.pop(name, None)
            return

        lock = self.redis_client.lock(
            f"{self.key_prefix}:locks:{name}",
            timeout=self.timeout_seconds,
            blocking_timeout=self.timeout_seconds,
        )
        acquired = await lock.acquire()
        if not acquired:
            raise TimeoutError(f"Could not acquire lock: {name}")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                logger.warning(f"Allocation lock {name} expired before release")
