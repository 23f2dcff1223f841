"""
Order service - turns the session cart into a submitted order.

The cart is read once, validated, converted into an Order and handed to
the submission collaborator. The cart is cleared only after a successful
submission.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Protocol

from chopchoo.core.constants import ESTIMATED_DELIVERY_MINUTES, PAYMENT_METHODS
from chopchoo.core.exceptions import OrderValidationError
from chopchoo.domain.cart import Cart
from chopchoo.domain.order import DeliveryAddress, Order, OrderItem
from chopchoo.services.cart_service import CartStore

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_ID = "guest"


class OrderSubmitter(Protocol):
    async def submit(self, order: Order) -> Order: ...


class InMemoryOrderSubmitter:
    """Keeps submitted orders in process memory."""

    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}

    async def submit(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order


def build_order(
    cart: Cart,
    delivery_address: DeliveryAddress,
    payment_method: str,
    *,
    customer_id: str = DEFAULT_CUSTOMER_ID,
    special_instructions: str | None = None,
    now: datetime | None = None,
) -> Order:
    """Snapshot a cart into an order record."""
    if not cart.lines:
        raise OrderValidationError("Order must contain at least one item")
    if not delivery_address.is_complete():
        raise OrderValidationError("Complete delivery address is required")
    method = str(payment_method or "").strip().lower()
    if method not in PAYMENT_METHODS:
        raise OrderValidationError(f"Unsupported payment method: {payment_method}")

    now = now or datetime.now(timezone.utc)
    order_id = f"order_{uuid.uuid4().hex[:12]}"
    items = [
        OrderItem(
            id=f"{order_id}_item_{index}",
            menu_item_id=line.menu_item.id,
            name=line.menu_item.name,
            quantity=line.quantity,
            unit_price=line.unit_price,
            total_price=line.line_total,
            customizations=line.customizations,
            special_instructions=line.special_instructions,
        )
        for index, line in enumerate(cart.lines)
    ]
    return Order(
        id=order_id,
        vendor_id=cart.vendor_id,
        customer_id=customer_id,
        items=items,
        subtotal=cart.subtotal,
        delivery_fee=cart.delivery_fee,
        service_fee=cart.service_fee,
        discount_amount=cart.discount_amount,
        total=cart.total,
        delivery_address=delivery_address,
        payment_method=method,
        promo_code=cart.promo_code,
        special_instructions=special_instructions,
        created_at=now,
        updated_at=now,
        estimated_delivery_time=now + timedelta(minutes=ESTIMATED_DELIVERY_MINUTES),
    )


class OrderService:
    """Checkout entry point."""

    def __init__(self, cart_store: CartStore, submitter: OrderSubmitter | None = None):
        self._carts = cart_store
        self._submitter = submitter or InMemoryOrderSubmitter()

    async def place_order(
        self,
        session_id: str,
        delivery_address: DeliveryAddress,
        payment_method: str,
        *,
        customer_id: str = DEFAULT_CUSTOMER_ID,
        special_instructions: str | None = None,
    ) -> Order:
        async def submit(cart: Cart) -> Order:
            order = build_order(
                cart,
                delivery_address,
                payment_method,
                customer_id=customer_id,
                special_instructions=special_instructions,
            )
            order = await self._submitter.submit(order)
            logger.info(
                "Order %s placed for vendor %s: %s items, total %s",
                order.id,
                order.vendor_id,
                len(order.items),
                order.total,
            )
            return order

        # cart is read, submitted and cleared under one session lock
        order = await self._carts.checkout(session_id, submit)
        if order is None:
            raise OrderValidationError("Order must contain at least one item")
        return order
