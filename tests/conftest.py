"""Shared pytest fixtures for cart, storage and API tests."""
from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from chopchoo.domain.cart import Vendor
from chopchoo.integrations.cart_storage import MemoryCartStorage
from chopchoo.services.cart_service import CartStore


@dataclass
class FakeRedisClient:
    """Async stand-in for the redis.asyncio client calls the backend makes."""

    data: dict[str, str] = field(default_factory=dict)
    expiry: dict[str, int] = field(default_factory=dict)
    setex_calls: list[tuple[str, int]] = field(default_factory=list)
    fail_writes: bool = False
    fail_reads: bool = False
    closed: bool = False

    async def get(self, key: str):
        if self.fail_reads:
            raise ConnectionError("redis down")
        return self.data.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        if self.fail_writes:
            raise ConnectionError("redis down")
        self.data[key] = value
        self.expiry[key] = ttl
        self.setex_calls.append((key, ttl))
        return True

    async def delete(self, key: str) -> int:
        if self.fail_writes:
            raise ConnectionError("redis down")
        existed = 1 if key in self.data else 0
        self.data.pop(key, None)
        self.expiry.pop(key, None)
        return existed

    async def set(self, key: str, value: str, nx: bool = False, ex: int | None = None):
        if nx and key in self.data:
            return None
        self.data[key] = value
        if ex is not None:
            self.expiry[key] = ex
        return True

    async def eval(self, _script: str, _keys_count: int, key: str, token: str) -> int:
        if self.data.get(key) == token:
            self.data.pop(key, None)
            return 1
        return 0

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedisClient:
    return FakeRedisClient()


@pytest.fixture
def memory_storage() -> MemoryCartStorage:
    return MemoryCartStorage()


@pytest.fixture
def cart_store(memory_storage) -> CartStore:
    return CartStore(memory_storage)


@pytest.fixture
def session_id() -> str:
    return "session-1"


@pytest.fixture
def vendor_a() -> Vendor:
    return Vendor(id="vendor_a", name="Auntie Muni's", slug="auntie-munis", city="Accra")


@pytest.fixture
def vendor_b() -> Vendor:
    return Vendor(id="vendor_b", name="Kenkey Palace", slug="kenkey-palace", city="Kumasi")
