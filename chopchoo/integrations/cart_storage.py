"""Key-value backends holding serialized cart documents.

Two implementations share one async contract:
- MemoryCartStorage: process-local dict with inactivity expiry
- RedisCartStorage: shared Redis keys with TTL and a token lock per key
"""
from __future__ import annotations

import asyncio
import logging
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as aioredis

from chopchoo.core.config import Settings
from chopchoo.core.constants import (
    CART_EXPIRY_SECONDS,
    CART_LOCK_KEY_PREFIX,
    CART_LOCK_TTL_SECONDS,
    CART_LOCK_WAIT_SECONDS,
)

logger = logging.getLogger(__name__)

UNLOCK_LUA = (
    "if redis.call('get', KEYS[1]) == ARGV[1] "
    "then return redis.call('del', KEYS[1]) else return 0 end"
)


class BaseCartStorage(ABC):
    """Abstract cart document store."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored document or None."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store the document, replacing any previous one."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the document. Missing keys are not an error."""

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        """Cross-process critical section for ``key``. No-op by default."""
        yield


class MemoryCartStorage(BaseCartStorage):
    """
    In-memory cart storage.

    Fast but not shared between processes. Documents expire after
    ``ttl_seconds`` without access.
    """

    def __init__(self, ttl_seconds: int = CART_EXPIRY_SECONDS):
        self._ttl = ttl_seconds
        self._data: dict[str, str] = {}
        self._last_access: dict[str, float] = {}

    def _cleanup_expired(self) -> None:
        now = time.time()
        expired = [
            key for key, last_access in self._last_access.items() if now - last_access > self._ttl
        ]
        for key in expired:
            self._data.pop(key, None)
            self._last_access.pop(key, None)
            logger.debug("Expired cart document %s", key)

    async def get(self, key: str) -> str | None:
        self._cleanup_expired()
        value = self._data.get(key)
        if value is not None:
            self._last_access[key] = time.time()
        return value

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._last_access[key] = time.time()

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)
        self._last_access.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class RedisCartStorage(BaseCartStorage):
    """Cart storage persisted in Redis with per-key lock and TTL."""

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        client: Any = None,
        ttl_seconds: int = CART_EXPIRY_SECONDS,
        lock_ttl_seconds: int = CART_LOCK_TTL_SECONDS,
        lock_wait_seconds: float = CART_LOCK_WAIT_SECONDS,
    ):
        if client is None:
            if not redis_url:
                raise ValueError("redis_url or client is required")
            client = aioredis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        self._client = client
        self._ttl = ttl_seconds
        self._lock_ttl = lock_ttl_seconds
        self._lock_wait = lock_wait_seconds

    @staticmethod
    def _lock_key(key: str) -> str:
        return f"{CART_LOCK_KEY_PREFIX}:{key}"

    async def get(self, key: str) -> str | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return raw

    async def set(self, key: str, value: str) -> None:
        await self._client.setex(key, self._ttl, value)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        lock_key = self._lock_key(key)
        token = str(uuid.uuid4())
        deadline = time.monotonic() + self._lock_wait
        acquired = False

        while time.monotonic() < deadline:
            acquired = bool(await self._client.set(lock_key, token, nx=True, ex=self._lock_ttl))
            if acquired:
                break
            await asyncio.sleep(0.05)

        if not acquired:
            logger.warning("Cart lock timeout for %s; proceeding without lock", key)
            yield
            return

        try:
            yield
        finally:
            try:
                await self._client.eval(UNLOCK_LUA, 1, lock_key, token)
            except aioredis.RedisError as exc:
                # lock expires on its own after lock_ttl
                logger.warning("Failed to release cart lock %s: %s", lock_key, exc)

    async def close(self) -> None:
        await self._client.aclose()


def create_cart_storage(settings: Settings) -> BaseCartStorage:
    """Build the backend selected by ``CART_STORAGE``."""
    cart = settings.cart
    if settings.uses_redis:
        logger.info("Cart storage: Redis")
        return RedisCartStorage(
            cart.redis_url,
            ttl_seconds=cart.ttl_seconds,
            lock_ttl_seconds=cart.lock_ttl_seconds,
            lock_wait_seconds=cart.lock_wait_seconds,
        )
    logger.info("Cart storage: in-memory (not shared between processes)")
    return MemoryCartStorage(ttl_seconds=cart.ttl_seconds)
