"""Cart domain types: vendor/menu snapshots, cart lines and the cart itself."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping

from chopchoo.core.constants import CART_DOCUMENT_VERSION
from chopchoo.core.money import ZERO, money_str, to_decimal

CustomizationKey = tuple[tuple[str, str], ...]

_VENDOR_FIELDS = ("id", "name", "slug", "logo", "address", "city", "cuisine_type", "phone", "rating")
_MENU_ITEM_FIELDS = (
    "id",
    "vendor_id",
    "name",
    "price",
    "description",
    "image",
    "category",
    "available",
)


def _extra(data: Mapping[str, Any], known: Iterable[str]) -> dict[str, Any]:
    known_set = set(known)
    return {key: value for key, value in data.items() if key not in known_set}


@dataclass(frozen=True)
class Vendor:
    """Vendor snapshot carried by the cart for display."""

    id: str
    name: str
    slug: str = ""
    logo: str = ""
    address: str = ""
    city: str = ""
    cuisine_type: str = ""
    phone: str = ""
    rating: float = 0.0
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "name": self.name,
                "slug": self.slug,
                "logo": self.logo,
                "address": self.address,
                "city": self.city,
                "cuisine_type": self.cuisine_type,
                "phone": self.phone,
                "rating": self.rating,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Vendor:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            slug=str(data.get("slug", "")),
            logo=str(data.get("logo", "") or ""),
            address=str(data.get("address", "") or ""),
            city=str(data.get("city", "") or ""),
            cuisine_type=str(data.get("cuisine_type", "") or ""),
            phone=str(data.get("phone", "") or ""),
            rating=float(data.get("rating", 0) or 0),
            extra=_extra(data, _VENDOR_FIELDS),
        )


@dataclass(frozen=True)
class MenuItem:
    """Menu item snapshot. The cart keeps a copy, never a live reference."""

    id: str
    vendor_id: str
    name: str
    price: Decimal
    description: str = ""
    image: str = ""
    category: str = ""
    available: bool = True
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        price = to_decimal(self.price)
        if price < ZERO:
            raise ValueError(f"Menu item {self.id} has a negative price")
        object.__setattr__(self, "price", price)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "vendor_id": self.vendor_id,
                "name": self.name,
                "price": money_str(self.price),
                "description": self.description,
                "image": self.image,
                "category": self.category,
                "available": self.available,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MenuItem:
        return cls(
            id=str(data["id"]),
            vendor_id=str(data.get("vendor_id", "")),
            name=str(data.get("name", "")),
            price=to_decimal(data.get("price", 0)),
            description=str(data.get("description", "") or ""),
            image=str(data.get("image", "") or ""),
            category=str(data.get("category", "") or ""),
            available=bool(data.get("available", True)),
            extra=_extra(data, _MENU_ITEM_FIELDS),
        )


@dataclass(frozen=True)
class CustomizationSelection:
    """One chosen option of a menu item customization."""

    customization_id: str
    option_name: str
    price: Decimal = ZERO

    def __post_init__(self) -> None:
        price = to_decimal(self.price)
        if price < ZERO:
            raise ValueError(f"Customization {self.customization_id} has a negative price")
        object.__setattr__(self, "price", price)

    def to_dict(self) -> dict[str, Any]:
        return {
            "customization_id": self.customization_id,
            "option_name": self.option_name,
            "price": money_str(self.price),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CustomizationSelection:
        return cls(
            customization_id=str(data["customization_id"]),
            option_name=str(data.get("option_name", "")),
            price=to_decimal(data.get("price", 0)),
        )


def customization_key(
    customizations: Iterable[CustomizationSelection], *, ordered: bool = False
) -> CustomizationKey:
    """Identity of a customization set.

    Sorted by default, so the same selections picked in a different order
    land on the same cart line. ``ordered=True`` keeps selection order.
    """
    pairs = tuple((c.customization_id, c.option_name) for c in customizations)
    if ordered:
        return pairs
    return tuple(sorted(pairs))


@dataclass
class CartLine:
    """One distinct configuration of a menu item inside the cart."""

    menu_item: MenuItem
    quantity: int
    customizations: tuple[CustomizationSelection, ...] = ()
    special_instructions: str | None = None
    line_total: Decimal = ZERO

    @property
    def unit_price(self) -> Decimal:
        return self.menu_item.price + sum((c.price for c in self.customizations), ZERO)

    def recalculate(self) -> None:
        self.line_total = self.unit_price * self.quantity

    def key(self, *, ordered: bool = False) -> tuple[str, CustomizationKey]:
        return self.menu_item.id, customization_key(self.customizations, ordered=ordered)

    def to_dict(self) -> dict[str, Any]:
        return {
            "menu_item": self.menu_item.to_dict(),
            "quantity": int(self.quantity),
            "customizations": [c.to_dict() for c in self.customizations],
            "special_instructions": self.special_instructions,
            "line_total": money_str(self.line_total),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CartLine:
        return cls(
            menu_item=MenuItem.from_dict(data["menu_item"]),
            quantity=int(data["quantity"]),
            customizations=tuple(
                CustomizationSelection.from_dict(raw) for raw in data.get("customizations", [])
            ),
            special_instructions=data.get("special_instructions"),
            line_total=to_decimal(data.get("line_total", 0)),
        )


@dataclass
class Cart:
    """In-progress order for a single vendor."""

    vendor_id: str
    vendor: Vendor
    lines: list[CartLine] = field(default_factory=list)
    subtotal: Decimal = ZERO
    delivery_fee: Decimal = ZERO
    service_fee: Decimal = ZERO
    discount_amount: Decimal = ZERO
    total: Decimal = ZERO
    promo_code: str | None = None

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def find_line(
        self,
        menu_item_id: str,
        customizations: Iterable[CustomizationSelection] = (),
        *,
        ordered: bool = False,
    ) -> int | None:
        """Index of the line matching item id and customization set, if any."""
        wanted = (str(menu_item_id), customization_key(customizations, ordered=ordered))
        for idx, line in enumerate(self.lines):
            if line.key(ordered=ordered) == wanted:
                return idx
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": CART_DOCUMENT_VERSION,
            "vendor_id": self.vendor_id,
            "vendor": self.vendor.to_dict(),
            "items": [line.to_dict() for line in self.lines],
            "subtotal": money_str(self.subtotal),
            "delivery_fee": money_str(self.delivery_fee),
            "service_fee": money_str(self.service_fee),
            "discount_amount": money_str(self.discount_amount),
            "total": money_str(self.total),
            "promo_code": self.promo_code,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Cart:
        return cls(
            vendor_id=str(data["vendor_id"]),
            vendor=Vendor.from_dict(data["vendor"]),
            lines=[CartLine.from_dict(raw) for raw in data.get("items", [])],
            subtotal=to_decimal(data.get("subtotal", 0)),
            delivery_fee=to_decimal(data.get("delivery_fee", 0)),
            service_fee=to_decimal(data.get("service_fee", 0)),
            discount_amount=to_decimal(data.get("discount_amount", 0)),
            total=to_decimal(data.get("total", 0)),
            promo_code=data.get("promo_code") or None,
        )


def item_count(cart: Cart | None) -> int:
    """Total number of units in the cart; 0 when there is no cart."""
    if cart is None:
        return 0
    return cart.item_count
