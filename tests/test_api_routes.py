from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from chopchoo.api import common, routes_cart, routes_orders
from chopchoo.api.api_server import create_api_app
from chopchoo.api.common import (
    AddItemRequest,
    LineRef,
    PlaceOrderRequest,
    PromoRequest,
    UpdateQuantityRequest,
    get_session_id,
)
from chopchoo.integrations.cart_storage import MemoryCartStorage, RedisCartStorage
from chopchoo.services.cart_service import CartStore
from chopchoo.services.order_service import InMemoryOrderSubmitter, OrderService


def _add_payload(item_id: str = "item_1", price: str = "10.00", **extra) -> AddItemRequest:
    return AddItemRequest(
        vendor={"id": "vendor_a", "name": "Auntie Muni's", "opening_hours": {}},
        menu_item={"id": item_id, "vendor_id": "vendor_a", "name": "Jollof", "price": price},
        **extra,
    )


@pytest.fixture
def store() -> CartStore:
    return CartStore(MemoryCartStorage())


@pytest.mark.asyncio
async def test_get_cart_returns_none_for_new_session(store):
    assert await routes_cart.get_cart(session_id="s1", store=store) is None


@pytest.mark.asyncio
async def test_add_item_returns_totals(store):
    result = await routes_cart.add_item(
        payload=_add_payload(
            quantity=2,
            customizations=[{"customization_id": "size", "option_name": "Large", "price": "2.00"}],
        ),
        session_id="s1",
        store=store,
    )

    assert result.vendor_id == "vendor_a"
    assert result.vendor["opening_hours"] == {}
    assert result.items_count == 2
    assert result.items[0].unit_price == Decimal("12.00")
    assert result.subtotal == Decimal("24.00")
    assert result.delivery_fee == Decimal("5")


@pytest.mark.asyncio
async def test_update_and_remove_item(store):
    await routes_cart.add_item(payload=_add_payload(), session_id="s1", store=store)

    updated = await routes_cart.update_item_quantity(
        payload=UpdateQuantityRequest(menu_item_id="item_1", quantity=4),
        session_id="s1",
        store=store,
    )
    assert updated.items_count == 4

    removed = await routes_cart.remove_item(
        payload=LineRef(menu_item_id="item_1"), session_id="s1", store=store
    )
    assert removed is None


@pytest.mark.asyncio
async def test_clear_cart(store):
    await routes_cart.add_item(payload=_add_payload(), session_id="s1", store=store)

    assert await routes_cart.clear_cart(session_id="s1", store=store) == {"success": True}
    assert await store.get_cart("s1") is None


@pytest.mark.asyncio
async def test_apply_and_remove_promo(store):
    await routes_cart.add_item(payload=_add_payload(price="20.00"), session_id="s1", store=store)

    applied = await routes_cart.apply_promo(
        payload=PromoRequest(code="chopmate10"), session_id="s1", store=store
    )
    assert applied.promo_code == "CHOPMATE10"
    assert applied.discount_amount == Decimal("2.00")

    removed = await routes_cart.remove_promo(session_id="s1", store=store)
    assert removed.promo_code is None
    assert removed.discount_amount == Decimal("0")


@pytest.mark.asyncio
async def test_invalid_promo_is_bad_request(store):
    await routes_cart.add_item(payload=_add_payload(), session_id="s1", store=store)

    with pytest.raises(HTTPException) as exc_info:
        await routes_cart.apply_promo(payload=PromoRequest(code="NOPE"), session_id="s1", store=store)

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_storage_failure_is_service_unavailable(fake_redis):
    store = CartStore(RedisCartStorage(client=fake_redis))
    fake_redis.fail_writes = True

    with pytest.raises(HTTPException) as exc_info:
        await routes_cart.add_item(payload=_add_payload(), session_id="s1", store=store)

    assert exc_info.value.status_code == 503


def test_session_header_required():
    with pytest.raises(HTTPException) as exc_info:
        get_session_id(x_session_id="  ")

    assert exc_info.value.status_code == 400
    assert get_session_id(x_session_id="abc") == "abc"


def test_negative_customization_price_rejected():
    with pytest.raises(ValidationError):
        _add_payload(
            customizations=[{"customization_id": "extra", "option_name": "Egg", "price": "-10"}],
        )


def test_services_not_initialized(monkeypatch):
    monkeypatch.setattr(common, "_cart_store", None)

    with pytest.raises(HTTPException) as exc_info:
        common.get_cart_store()

    assert exc_info.value.status_code == 500


# ============= Orders =============


def _order_payload(payment_method: str = "cash") -> PlaceOrderRequest:
    return PlaceOrderRequest(
        delivery_address={
            "name": "Ama Mensah",
            "phone": "+233200000000",
            "address": "12 Oxford Street",
            "city": "Accra",
            "coordinates": {"latitude": 5.56, "longitude": -0.19},
        },
        payment_method=payment_method,
    )


@pytest.mark.asyncio
async def test_place_order_route(store):
    submitter = InMemoryOrderSubmitter()
    service = OrderService(store, submitter)
    await routes_cart.add_item(payload=_add_payload(), session_id="s1", store=store)

    result = await routes_orders.place_order(payload=_order_payload(), session_id="s1", service=service)

    assert result["success"] is True
    assert result["order"]["delivery_address"]["coordinates"] == {"latitude": 5.56, "longitude": -0.19}
    assert result["order"]["id"] in submitter.orders
    assert await store.get_cart("s1") is None


@pytest.mark.asyncio
async def test_place_order_without_cart_is_bad_request(store):
    service = OrderService(store)

    with pytest.raises(HTTPException) as exc_info:
        await routes_orders.place_order(payload=_order_payload(), session_id="s1", service=service)

    assert exc_info.value.status_code == 400


# ============= App =============


def test_create_api_app_registers_routes():
    store = CartStore(MemoryCartStorage())
    app = create_api_app(cart_store=store)

    paths = {getattr(route, "path", None) for route in app.routes}

    assert "/api/v1/cart" in paths
    assert "/api/v1/cart/items" in paths
    assert "/api/v1/cart/promo" in paths
    assert "/api/v1/orders" in paths
    assert "/health" in paths
    assert common.get_cart_store() is store
