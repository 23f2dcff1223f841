"""Integrations package - storage backends for cart documents."""

from chopchoo.integrations.cart_storage import (
    BaseCartStorage,
    MemoryCartStorage,
    RedisCartStorage,
    create_cart_storage,
)

__all__ = [
    "BaseCartStorage",
    "MemoryCartStorage",
    "RedisCartStorage",
    "create_cart_storage",
]
