"""
Per-site serialization of backup imports.

An import wipes and rebuilds the whole site, so two imports into the same
site must never interleave. A second import is rejected with Conflict rather
than queued behind the first.

The in-process asyncio lock covers a single worker. When REDIS_URL is set, a
Redis SET NX key additionally covers multiple uvicorn workers; if Redis is
unreachable the import proceeds under the in-process lock alone.
"""
import asyncio
import logging
import secrets
from contextlib import asynccontextmanager
from typing import Dict, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from subnetly.config import settings
from subnetly.exceptions import Conflict

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "An import is already running for this site"


class SiteImportLock:
    def __init__(self, redis_url: Optional[str] = None, ttl_seconds: int = 600):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self._locks: Dict[int, asyncio.Lock] = {}

    def _local(self, site_id: int) -> asyncio.Lock:
        lock = self._locks.get(site_id)
        if lock is None:
            lock = self._locks[site_id] = asyncio.Lock()
        return lock

    def is_locked(self, site_id: int) -> bool:
        lock = self._locks.get(site_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, site_id: int):
        lock = self._local(site_id)
        # No await between the check and the acquire, so this cannot race
        # within one event loop.
        if lock.locked():
            raise Conflict(CONFLICT_MESSAGE)
        async with lock:
            token = await self._acquire_remote(site_id)
            try:
                yield
            finally:
                if token:
                    await self._release_remote(site_id, token)

    def _key(self, site_id: int) -> str:
        return f"import-lock:{site_id}"

    async def _acquire_remote(self, site_id: int) -> Optional[str]:
        if not self.redis_url:
            return None
        token = secrets.token_hex(8)
        try:
            async with aioredis.from_url(self.redis_url, socket_connect_timeout=1) as r:
                acquired = await r.set(self._key(site_id), token, nx=True, ex=self.ttl_seconds)
        except (RedisError, OSError) as e:
            logger.warning("Redis unavailable for site %s import lock, using in-process lock only: %s",
                           site_id, e)
            return None
        if not acquired:
            raise Conflict(CONFLICT_MESSAGE)
        return token

    async def _release_remote(self, site_id: int, token: str):
        try:
            async with aioredis.from_url(self.redis_url, socket_connect_timeout=1) as r:
                current = await r.get(self._key(site_id))
                if current is not None and current.decode() == token:
                    await r.delete(self._key(site_id))
        except (RedisError, OSError) as e:
            # The key expires on its own after ttl_seconds
            logger.warning("Could not release site %s import lock: %s", site_id, e)


import_lock = SiteImportLock(settings.REDIS_URL or None, settings.IMPORT_LOCK_TTL_SECONDS)
