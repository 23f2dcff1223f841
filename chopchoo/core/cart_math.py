"""Shared helpers for cart totals."""
from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Iterable

from chopchoo.core.constants import DEFAULT_DELIVERY_FEE, FREE_DELIVERY_THRESHOLD, SERVICE_FEE_RATE
from chopchoo.core.money import ZERO, quantize_money
from chopchoo.domain.cart import Cart, CartLine


def calc_subtotal(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)


def calc_delivery_fee(subtotal: Decimal) -> Decimal:
    if subtotal >= FREE_DELIVERY_THRESHOLD:
        return ZERO
    return DEFAULT_DELIVERY_FEE


def calc_service_fee(subtotal: Decimal) -> Decimal:
    return quantize_money(subtotal * SERVICE_FEE_RATE)


def calc_total(
    subtotal: Decimal,
    delivery_fee: Decimal,
    service_fee: Decimal,
    discount_amount: Decimal,
) -> Decimal:
    total = subtotal + delivery_fee + service_fee - discount_amount
    return max(ZERO, quantize_money(total))


def calculate_totals(cart: Cart) -> Cart:
    """Derive subtotal, fees and total from the line totals.

    Pure and idempotent: returns a new cart and never touches the input.
    The discount amount is taken as given.
    """
    subtotal = calc_subtotal(cart.lines)
    delivery_fee = calc_delivery_fee(subtotal)
    service_fee = calc_service_fee(subtotal)
    return replace(
        cart,
        lines=list(cart.lines),
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        service_fee=service_fee,
        total=calc_total(subtotal, delivery_fee, service_fee, cart.discount_amount),
    )
