"""
Cart service - the single source of truth for session carts.

Each session owns at most one cart, for one vendor. Every mutation is a
full read-modify-write of the stored document, serialized per session:
an asyncio lock keeps writers in this process in line and the storage
backend lock covers other processes sharing the same Redis.

Reads degrade to "no cart" on any storage or decoding problem; writes
raise CartStorageError so the caller can reload and retry.
"""
from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Iterable, Sequence, TypeVar

from chopchoo.core.cart_math import calculate_totals
from chopchoo.core.constants import CART_KEY_PREFIX
from chopchoo.core.exceptions import CartStorageError, InvalidPromoCodeError
from chopchoo.core.money import ZERO
from chopchoo.domain.cart import Cart, CartLine, CustomizationSelection, MenuItem, Vendor
from chopchoo.domain.promo import PromoResolver, StaticPromoResolver, normalize_promo_code
from chopchoo.integrations.cart_storage import BaseCartStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CartStore:
    """Session-scoped cart operations over a storage backend."""

    def __init__(
        self,
        storage: BaseCartStorage,
        promo_resolver: PromoResolver | None = None,
        *,
        ordered_customization_match: bool = False,
    ):
        self._storage = storage
        self._promos = promo_resolver or StaticPromoResolver()
        self._ordered = ordered_customization_match
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @staticmethod
    def cart_key(session_id: str) -> str:
        return f"{CART_KEY_PREFIX}:{session_id}"

    @asynccontextmanager
    async def _session_lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                async with self._storage.lock(self.cart_key(session_id)):
                    yield
        finally:
            # forget the lock once nobody holds or waits for it
            remaining = self._lock_users[session_id] - 1
            if remaining:
                self._lock_users[session_id] = remaining
            else:
                del self._lock_users[session_id]
                del self._locks[session_id]

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------

    async def _load(self, session_id: str) -> Cart | None:
        key = self.cart_key(session_id)
        try:
            raw = await self._storage.get(key)
        except Exception as exc:
            logger.warning("Cart read failed for %s, treating as empty: %s", key, exc)
            return None
        if not raw:
            return None
        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise ValueError("cart document is not an object")
            cart = Cart.from_dict(payload)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Corrupt cart document %s, treating as empty: %s", key, exc)
            return None
        if not cart.lines:
            return None
        return cart

    async def _save(self, session_id: str, cart: Cart) -> None:
        key = self.cart_key(session_id)
        serialized = json.dumps(cart.to_dict(), ensure_ascii=False)
        try:
            await self._storage.set(key, serialized)
        except Exception as exc:
            logger.error("Cart write failed for %s: %s", key, exc)
            raise CartStorageError(key, exc) from exc

    async def _delete(self, session_id: str) -> None:
        key = self.cart_key(session_id)
        try:
            await self._storage.delete(key)
        except Exception as exc:
            logger.error("Cart delete failed for %s: %s", key, exc)
            raise CartStorageError(key, exc) from exc

    def _recalculate(self, cart: Cart) -> Cart:
        """Totals, then the promo discount against them, then totals again."""
        cart = calculate_totals(cart)
        if cart.promo_code:
            rule = self._promos.resolve(cart.promo_code)
            if rule is None:
                logger.info("Dropping promo %s no longer known to resolver", cart.promo_code)
                cart.promo_code = None
                cart.discount_amount = ZERO
            else:
                try:
                    cart.discount_amount = rule.discount_for(cart.subtotal, cart.delivery_fee)
                except InvalidPromoCodeError as exc:
                    logger.info("Dropping promo %s: %s", cart.promo_code, exc.message)
                    cart.promo_code = None
                    cart.discount_amount = ZERO
            cart = calculate_totals(cart)
        return cart

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    async def get_cart(self, session_id: str) -> Cart | None:
        return await self._load(session_id)

    async def add_to_cart(
        self,
        session_id: str,
        vendor: Vendor,
        menu_item: MenuItem,
        quantity: int = 1,
        customizations: Sequence[CustomizationSelection] = (),
        special_instructions: str | None = None,
    ) -> Cart:
        """Add an item, merging into an identical line when there is one.

        A cart held for another vendor is discarded first. A merged line
        keeps its existing special instructions.
        """
        async with self._session_lock(session_id):
            cart = await self._load(session_id)
            if cart is not None and cart.vendor_id != vendor.id:
                logger.info(
                    "Replacing cart of vendor %s with vendor %s for session %s",
                    cart.vendor_id,
                    vendor.id,
                    session_id,
                )
                await self._delete(session_id)
                cart = None

            if cart is None:
                cart = Cart(vendor_id=vendor.id, vendor=vendor)

            idx = cart.find_line(menu_item.id, customizations, ordered=self._ordered)
            if idx is not None:
                line = cart.lines[idx]
                line.quantity += quantity
                line.recalculate()
                logger.info(
                    "Updated cart line %s qty=%s for session %s", menu_item.id, line.quantity, session_id
                )
            else:
                line = CartLine(
                    menu_item=menu_item,
                    quantity=quantity,
                    customizations=tuple(customizations),
                    special_instructions=special_instructions,
                )
                line.recalculate()
                cart.lines.append(line)
                logger.info("Added %s to cart for session %s", menu_item.id, session_id)

            cart = self._recalculate(cart)
            await self._save(session_id, cart)
            return cart

    async def _remove_locked(
        self, session_id: str, menu_item_id: str, customizations: Iterable[CustomizationSelection]
    ) -> Cart | None:
        cart = await self._load(session_id)
        if cart is None:
            return None
        idx = cart.find_line(menu_item_id, customizations, ordered=self._ordered)
        if idx is None:
            return cart

        del cart.lines[idx]
        logger.info("Removed %s from cart for session %s", menu_item_id, session_id)
        if not cart.lines:
            await self._delete(session_id)
            return None

        cart = self._recalculate(cart)
        await self._save(session_id, cart)
        return cart

    async def remove_from_cart(
        self,
        session_id: str,
        menu_item_id: str,
        customizations: Sequence[CustomizationSelection] = (),
    ) -> Cart | None:
        """Drop the whole matching line, whatever its quantity."""
        async with self._session_lock(session_id):
            return await self._remove_locked(session_id, menu_item_id, customizations)

    async def update_quantity(
        self,
        session_id: str,
        menu_item_id: str,
        customizations: Sequence[CustomizationSelection],
        new_quantity: int,
    ) -> Cart | None:
        async with self._session_lock(session_id):
            if new_quantity <= 0:
                return await self._remove_locked(session_id, menu_item_id, customizations)

            cart = await self._load(session_id)
            if cart is None:
                return None
            idx = cart.find_line(menu_item_id, customizations, ordered=self._ordered)
            if idx is None:
                return cart

            line = cart.lines[idx]
            line.quantity = new_quantity
            line.recalculate()
            cart = self._recalculate(cart)
            await self._save(session_id, cart)
            return cart

    async def checkout(
        self, session_id: str, handler: Callable[[Cart], Awaitable[T]]
    ) -> T | None:
        """Pass the cart to ``handler`` and clear it once the handler succeeds.

        The session lock is held throughout, so writes arriving meanwhile
        wait and land in the next cart. Returns None when there is no cart.
        """
        async with self._session_lock(session_id):
            cart = await self._load(session_id)
            if cart is None:
                return None
            result = await handler(cart)
            await self._delete(session_id)
        logger.info("Checked out cart for session %s", session_id)
        return result

    async def clear_cart(self, session_id: str) -> None:
        async with self._session_lock(session_id):
            await self._delete(session_id)
        logger.info("Cleared cart for session %s", session_id)

    async def apply_promo_code(self, session_id: str, code: str) -> Cart | None:
        """Attach a promo code. Unknown codes raise and leave the cart as is.

        Without a cart there is nothing to discount and None is returned.
        """
        async with self._session_lock(session_id):
            cart = await self._load(session_id)
            if cart is None:
                return None

            normalized = normalize_promo_code(code)
            rule = self._promos.resolve(normalized)
            if rule is None:
                logger.info("Rejected promo code %r for session %s", code, session_id)
                raise InvalidPromoCodeError(normalized)

            cart.discount_amount = rule.discount_for(cart.subtotal, cart.delivery_fee)
            cart.promo_code = normalized
            cart = self._recalculate(cart)
            await self._save(session_id, cart)
            logger.info(
                "Applied promo %s (-%s) for session %s", normalized, cart.discount_amount, session_id
            )
            return cart

    async def remove_promo_code(self, session_id: str) -> Cart | None:
        async with self._session_lock(session_id):
            cart = await self._load(session_id)
            if cart is None:
                return None
            cart.promo_code = None
            cart.discount_amount = ZERO
            cart = self._recalculate(cart)
            await self._save(session_id, cart)
            return cart
