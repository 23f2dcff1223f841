"""Domain package."""

from .cart import Cart, CartLine, CustomizationSelection, MenuItem, Vendor, item_count
from .order import DeliveryAddress, Order, OrderItem, OrderStatus, PaymentStatus
from .promo import DiscountKind, PromoRule, StaticPromoResolver

__all__ = [
    "Cart",
    "CartLine",
    "CustomizationSelection",
    "DeliveryAddress",
    "DiscountKind",
    "MenuItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "PromoRule",
    "StaticPromoResolver",
    "Vendor",
    "item_count",
]
