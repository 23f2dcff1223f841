"""Promo code rules and the static lookup table."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Protocol

from chopchoo.core.exceptions import InvalidPromoCodeError
from chopchoo.core.money import ZERO, quantize_money


class DiscountKind:
    """How a promo rule turns into a discount amount."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_DELIVERY = "free_delivery"


@dataclass(frozen=True, slots=True)
class PromoRule:
    code: str
    kind: str
    value: Decimal = ZERO
    description: str = ""
    min_order_amount: Decimal | None = None
    max_discount_amount: Decimal | None = None

    def discount_for(self, subtotal: Decimal, delivery_fee: Decimal) -> Decimal:
        """Discount this rule grants against the given cart amounts."""
        if self.min_order_amount is not None and subtotal < self.min_order_amount:
            raise InvalidPromoCodeError(
                self.code, f"Promo code {self.code} requires a minimum order of {self.min_order_amount}"
            )
        if self.kind == DiscountKind.PERCENTAGE:
            discount = quantize_money(subtotal * self.value / Decimal("100"))
        elif self.kind == DiscountKind.FREE_DELIVERY:
            discount = delivery_fee
        else:
            discount = self.value
        if self.max_discount_amount is not None:
            discount = min(discount, self.max_discount_amount)
        return discount


DEFAULT_PROMO_RULES: Mapping[str, PromoRule] = {
    "CHOPMATE10": PromoRule(
        code="CHOPMATE10",
        kind=DiscountKind.PERCENTAGE,
        value=Decimal("10"),
        description="10% off your order",
    ),
    "WELCOME5": PromoRule(
        code="WELCOME5",
        kind=DiscountKind.FIXED,
        value=Decimal("5"),
        description="5 off your first order",
    ),
    "FREEDEL": PromoRule(
        code="FREEDEL",
        kind=DiscountKind.FREE_DELIVERY,
        description="Free delivery",
    ),
}


def normalize_promo_code(code: str | None) -> str:
    return str(code or "").strip().upper()


class PromoResolver(Protocol):
    def resolve(self, code: str) -> PromoRule | None: ...


class StaticPromoResolver:
    """Lookup against an in-process rule table."""

    def __init__(self, rules: Mapping[str, PromoRule] | None = None) -> None:
        self._rules = dict(DEFAULT_PROMO_RULES if rules is None else rules)

    def resolve(self, code: str) -> PromoRule | None:
        return self._rules.get(normalize_promo_code(code))
