"""Order domain types and status enums."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from chopchoo.core.money import ZERO, money_str
from chopchoo.domain.cart import CustomizationSelection


class OrderStatus:
    """Order lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus:
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class DeliveryAddress:
    name: str
    phone: str
    address: str
    city: str
    coordinates: Coordinates | None = None
    instructions: str | None = None

    def is_complete(self) -> bool:
        return bool(self.name.strip() and self.address.strip())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "coordinates": (
                {"latitude": self.coordinates.latitude, "longitude": self.coordinates.longitude}
                if self.coordinates
                else None
            ),
            "instructions": self.instructions,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DeliveryAddress:
        coords = data.get("coordinates")
        return cls(
            name=str(data.get("name", "")),
            phone=str(data.get("phone", "")),
            address=str(data.get("address", "")),
            city=str(data.get("city", "")),
            coordinates=(
                Coordinates(float(coords["latitude"]), float(coords["longitude"])) if coords else None
            ),
            instructions=data.get("instructions"),
        )


@dataclass(frozen=True)
class OrderItem:
    id: str
    menu_item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    customizations: tuple[CustomizationSelection, ...] = ()
    special_instructions: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "total_price": money_str(self.total_price),
            "customizations": [c.to_dict() for c in self.customizations],
            "special_instructions": self.special_instructions,
        }


@dataclass
class Order:
    id: str
    vendor_id: str
    customer_id: str
    items: list[OrderItem]
    subtotal: Decimal
    delivery_fee: Decimal
    service_fee: Decimal
    total: Decimal
    delivery_address: DeliveryAddress
    payment_method: str
    created_at: datetime
    updated_at: datetime
    estimated_delivery_time: datetime
    status: str = OrderStatus.PENDING
    payment_status: str = PaymentStatus.PENDING
    discount_amount: Decimal = ZERO
    promo_code: str | None = None
    special_instructions: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "customer_id": self.customer_id,
            "items": [item.to_dict() for item in self.items],
            "subtotal": money_str(self.subtotal),
            "delivery_fee": money_str(self.delivery_fee),
            "service_fee": money_str(self.service_fee),
            "discount_amount": money_str(self.discount_amount),
            "total": money_str(self.total),
            "status": self.status,
            "payment_method": self.payment_method,
            "payment_status": self.payment_status,
            "delivery_address": self.delivery_address.to_dict(),
            "estimated_delivery_time": self.estimated_delivery_time.isoformat(),
            "promo_code": self.promo_code,
            "special_instructions": self.special_instructions,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
