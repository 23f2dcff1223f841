"""Shared request/response models and service wiring for the cart API."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from fastapi import Header, HTTPException
from pydantic import BaseModel, Field

from chopchoo.domain.cart import Cart, CustomizationSelection, MenuItem, Vendor
from chopchoo.services.cart_service import CartStore
from chopchoo.services.order_service import OrderService

logger = logging.getLogger(__name__)

_cart_store: CartStore | None = None
_order_service: OrderService | None = None


# =============================================================================
# Pydantic Models
# =============================================================================


class CustomizationModel(BaseModel):
    customization_id: str
    option_name: str
    price: Decimal = Field(default=Decimal("0"), ge=0)

    def to_domain(self) -> CustomizationSelection:
        return CustomizationSelection(self.customization_id, self.option_name, self.price)


class VendorModel(BaseModel):
    id: str
    name: str
    slug: str = ""
    logo: str = ""
    address: str = ""
    city: str = ""
    cuisine_type: str = ""
    phone: str = ""
    rating: float = 0.0

    model_config = {"extra": "allow"}

    def to_domain(self) -> Vendor:
        return Vendor.from_dict(self.model_dump())


class MenuItemModel(BaseModel):
    id: str
    vendor_id: str
    name: str
    price: Decimal = Field(ge=0)
    description: str = ""
    image: str = ""
    category: str = ""
    available: bool = True

    model_config = {"extra": "allow"}

    def to_domain(self) -> MenuItem:
        return MenuItem.from_dict(self.model_dump())


class AddItemRequest(BaseModel):
    vendor: VendorModel
    menu_item: MenuItemModel
    quantity: int = Field(default=1, ge=1)
    customizations: list[CustomizationModel] = []
    special_instructions: str | None = None


class LineRef(BaseModel):
    menu_item_id: str
    customizations: list[CustomizationModel] = []

    def selections(self) -> list[CustomizationSelection]:
        return [c.to_domain() for c in self.customizations]


class UpdateQuantityRequest(LineRef):
    quantity: int


class PromoRequest(BaseModel):
    code: str = Field(min_length=1)


class CartLineResponse(BaseModel):
    menu_item: dict[str, Any]
    quantity: int
    customizations: list[CustomizationModel]
    special_instructions: str | None = None
    unit_price: Decimal
    line_total: Decimal


class CartResponse(BaseModel):
    vendor_id: str
    vendor: dict[str, Any]
    items: list[CartLineResponse]
    items_count: int
    subtotal: Decimal
    delivery_fee: Decimal
    service_fee: Decimal
    discount_amount: Decimal
    total: Decimal
    promo_code: str | None = None


class CoordinatesModel(BaseModel):
    latitude: float
    longitude: float


class DeliveryAddressModel(BaseModel):
    name: str
    phone: str
    address: str
    city: str
    coordinates: CoordinatesModel | None = None
    instructions: str | None = None


class PlaceOrderRequest(BaseModel):
    delivery_address: DeliveryAddressModel
    payment_method: str
    special_instructions: str | None = None


# =============================================================================
# Helper Functions
# =============================================================================


def cart_to_response(cart: Cart | None) -> CartResponse | None:
    if cart is None:
        return None
    return CartResponse(
        vendor_id=cart.vendor_id,
        vendor=cart.vendor.to_dict(),
        items=[
            CartLineResponse(
                menu_item=line.menu_item.to_dict(),
                quantity=line.quantity,
                customizations=[CustomizationModel(**c.to_dict()) for c in line.customizations],
                special_instructions=line.special_instructions,
                unit_price=line.unit_price,
                line_total=line.line_total,
            )
            for line in cart.lines
        ],
        items_count=cart.item_count,
        subtotal=cart.subtotal,
        delivery_fee=cart.delivery_fee,
        service_fee=cart.service_fee,
        discount_amount=cart.discount_amount,
        total=cart.total,
        promo_code=cart.promo_code,
    )


def get_session_id(x_session_id: str | None = Header(default=None)) -> str:
    """Cart owner key taken from the X-Session-Id header."""
    session_id = (x_session_id or "").strip()
    if not session_id:
        raise HTTPException(status_code=400, detail="X-Session-Id header is required")
    return session_id


def set_services(cart_store: CartStore, order_service: OrderService) -> None:
    """Set service instances for API routes."""
    global _cart_store, _order_service
    _cart_store = cart_store
    _order_service = order_service


def get_cart_store() -> CartStore:
    if _cart_store is None:
        raise HTTPException(status_code=500, detail="Cart store not initialized")
    return _cart_store


def get_order_service() -> OrderService:
    if _order_service is None:
        raise HTTPException(status_code=500, detail="Order service not initialized")
    return _order_service
