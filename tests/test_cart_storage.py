from __future__ import annotations

import pytest

import chopchoo.integrations.cart_storage as cart_storage_module
from chopchoo.core.config import CartConfig, Settings
from chopchoo.integrations.cart_storage import (
    MemoryCartStorage,
    RedisCartStorage,
    create_cart_storage,
)


def _settings(storage: str, redis_url: str | None = None) -> Settings:
    return Settings(
        cart=CartConfig(
            storage=storage,
            redis_url=redis_url,
            ttl_seconds=3600,
            lock_ttl_seconds=5,
            lock_wait_seconds=0.2,
            ordered_customization_match=False,
        ),
        log_level="INFO",
        api_host="127.0.0.1",
        api_port=8000,
    )


# ============= MemoryCartStorage =============


@pytest.mark.asyncio
async def test_memory_storage_set_get_delete():
    storage = MemoryCartStorage()

    await storage.set("cart:1", "{}")
    assert await storage.get("cart:1") == "{}"

    await storage.delete("cart:1")
    await storage.delete("cart:1")
    assert await storage.get("cart:1") is None


@pytest.mark.asyncio
async def test_memory_storage_expires_idle_documents(monkeypatch):
    now = [1_000_000.0]
    monkeypatch.setattr(cart_storage_module.time, "time", lambda: now[0])
    storage = MemoryCartStorage(ttl_seconds=60)

    await storage.set("cart:1", "{}")
    now[0] += 30
    assert await storage.get("cart:1") == "{}"

    now[0] += 61
    assert await storage.get("cart:1") is None
    assert len(storage) == 0


@pytest.mark.asyncio
async def test_memory_storage_lock_is_noop():
    storage = MemoryCartStorage()

    async with storage.lock("cart:1"):
        await storage.set("cart:1", "x")

    assert await storage.get("cart:1") == "x"


# ============= RedisCartStorage =============


@pytest.mark.asyncio
async def test_redis_storage_uses_setex_with_ttl(fake_redis):
    storage = RedisCartStorage(client=fake_redis, ttl_seconds=120)

    await storage.set("cart:42", '{"a": 1}')

    assert fake_redis.setex_calls == [("cart:42", 120)]
    assert await storage.get("cart:42") == '{"a": 1}'


@pytest.mark.asyncio
async def test_redis_storage_is_shared_between_instances(fake_redis):
    storage_a = RedisCartStorage(client=fake_redis)
    storage_b = RedisCartStorage(client=fake_redis)

    await storage_a.set("cart:7", "doc")

    assert await storage_b.get("cart:7") == "doc"
    await storage_b.delete("cart:7")
    assert await storage_a.get("cart:7") is None


@pytest.mark.asyncio
async def test_redis_storage_decodes_bytes(fake_redis):
    fake_redis.data["cart:1"] = b"{}"
    storage = RedisCartStorage(client=fake_redis)

    assert await storage.get("cart:1") == "{}"


@pytest.mark.asyncio
async def test_redis_lock_acquires_and_releases(fake_redis):
    storage = RedisCartStorage(client=fake_redis, lock_ttl_seconds=7)

    async with storage.lock("cart:1"):
        assert "cart_lock:cart:1" in fake_redis.data
        assert fake_redis.expiry["cart_lock:cart:1"] == 7

    assert "cart_lock:cart:1" not in fake_redis.data


@pytest.mark.asyncio
async def test_redis_lock_times_out_and_proceeds(fake_redis, caplog):
    fake_redis.data["cart_lock:cart:1"] = "someone-else"
    storage = RedisCartStorage(client=fake_redis, lock_wait_seconds=0.1)

    entered = False
    async with storage.lock("cart:1"):
        entered = True

    assert entered
    # foreign lock is left alone
    assert fake_redis.data["cart_lock:cart:1"] == "someone-else"
    assert "Cart lock timeout" in caplog.text


@pytest.mark.asyncio
async def test_redis_storage_close(fake_redis):
    storage = RedisCartStorage(client=fake_redis)

    await storage.close()

    assert fake_redis.closed


def test_redis_storage_requires_url_or_client():
    with pytest.raises(ValueError):
        RedisCartStorage()


def test_redis_storage_builds_client_from_url(monkeypatch, fake_redis):
    calls = []

    def fake_from_url(url, **kwargs):
        calls.append((url, kwargs))
        return fake_redis

    monkeypatch.setattr(cart_storage_module.aioredis, "from_url", fake_from_url)

    RedisCartStorage("redis://fake:6379/0")

    assert calls[0][0] == "redis://fake:6379/0"
    assert calls[0][1]["decode_responses"] is True


# ============= Factory =============


def test_factory_builds_memory_backend():
    assert isinstance(create_cart_storage(_settings("memory")), MemoryCartStorage)


def test_factory_builds_redis_backend(monkeypatch, fake_redis):
    monkeypatch.setattr(cart_storage_module.aioredis, "from_url", lambda *a, **k: fake_redis)

    storage = create_cart_storage(_settings("redis", "redis://fake"))

    assert isinstance(storage, RedisCartStorage)
