"""Environment-driven configuration objects for the storefront core."""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from chopchoo.core.constants import (
    CART_EXPIRY_SECONDS,
    CART_LOCK_TTL_SECONDS,
    CART_LOCK_WAIT_SECONDS,
)
from chopchoo.core.exceptions import ConfigurationException

STORAGE_BACKENDS = {"memory", "redis"}


def _str_to_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"true", "1", "yes", "y"}


@dataclass(slots=True)
class CartConfig:
    storage: str
    redis_url: str | None
    ttl_seconds: int
    lock_ttl_seconds: int
    lock_wait_seconds: float
    ordered_customization_match: bool


@dataclass(slots=True)
class Settings:
    cart: CartConfig
    log_level: str
    api_host: str
    api_port: int

    @property
    def uses_redis(self) -> bool:
        return self.cart.storage == "redis"


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    redis_url = os.getenv("REDIS_URL") or None
    # Redis is picked automatically when a URL is configured
    storage = os.getenv("CART_STORAGE", "redis" if redis_url else "memory").strip().lower()
    if storage not in STORAGE_BACKENDS:
        raise ConfigurationException(f"Unknown CART_STORAGE backend: {storage}")
    if storage == "redis" and not redis_url:
        raise ConfigurationException("CART_STORAGE=redis requires REDIS_URL")

    try:
        cart = CartConfig(
            storage=storage,
            redis_url=redis_url,
            ttl_seconds=int(os.getenv("CART_TTL_SECONDS", str(CART_EXPIRY_SECONDS))),
            lock_ttl_seconds=int(os.getenv("CART_LOCK_TTL_SECONDS", str(CART_LOCK_TTL_SECONDS))),
            lock_wait_seconds=float(
                os.getenv("CART_LOCK_WAIT_SECONDS", str(CART_LOCK_WAIT_SECONDS))
            ),
            ordered_customization_match=_str_to_bool(
                os.getenv("CART_ORDERED_CUSTOMIZATION_MATCH", "false")
            ),
        )
        api_port = int(os.getenv("API_PORT", "8000"))
    except ValueError as exc:
        raise ConfigurationException(f"Invalid numeric setting: {exc}") from exc

    return Settings(
        cart=cart,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        api_host=os.getenv("API_HOST", "0.0.0.0"),
        api_port=api_port,
    )
