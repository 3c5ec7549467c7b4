"""
Per-game round-release lock held in Redis.

Two admin clicks on the same game can land on different API processes;
only the one holding this lock gets to compute the unused pool and insert
the next round.  The ``FOR UPDATE`` game row and the unique round-slot
constraint back it up inside the database.

Acquire is ``SET NX EX`` with a random token; release deletes the key
only while it still carries our token (Lua, so check and delete are one
step).
"""

from __future__ import annotations

import logging
import uuid

import redis.asyncio as aioredis

from geoquiz.domain.errors import ReleaseInProgress

logger = logging.getLogger(__name__)

_COMPARE_AND_DELETE = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class ReleaseLock:
    def __init__(self, client: aioredis.Redis, game_id: int, ttl_seconds: int = 30):
        self.redis = client
        self.game_id = game_id
        self.key = f"geoquiz:game:{game_id}:release"
        self.ttl = ttl_seconds
        self.token = uuid.uuid4().hex

    async def acquire(self) -> bool:
        return bool(await self.redis.set(self.key, self.token, nx=True, ex=self.ttl))

    async def release(self) -> bool:
        """False when the TTL ran out first and someone else may hold the key."""
        deleted = await self.redis.eval(_COMPARE_AND_DELETE, 1, self.key, self.token)
        if not deleted:
            logger.warning(
                "Release lock for game %s expired after %ss before the round was written",
                self.game_id,
                self.ttl,
            )
        return bool(deleted)

    async def __aenter__(self) -> ReleaseLock:
        if not await self.acquire():
            logger.info("Round release for game %s already in progress", self.game_id)
            raise ReleaseInProgress(f"A round release for game {self.game_id} is in progress")
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.release()


def release_lock(client: aioredis.Redis, game_id: int, ttl_seconds: int = 30) -> ReleaseLock:
    return ReleaseLock(client, game_id, ttl_seconds)
