from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from chopchoo.core.exceptions import CartStorageError, InvalidPromoCodeError
from chopchoo.services.cart_service import CartStore

from .common import (
    AddItemRequest,
    CartResponse,
    LineRef,
    PromoRequest,
    UpdateQuantityRequest,
    cart_to_response,
    get_cart_store,
    get_session_id,
    logger,
)

router = APIRouter()


def _storage_failure(exc: CartStorageError) -> HTTPException:
    logger.error("Cart storage failure: %s", exc.message)
    return HTTPException(status_code=503, detail="Cart could not be saved, please reload and retry")


@router.get("/cart", response_model=CartResponse | None)
async def get_cart(
    session_id: str = Depends(get_session_id),
    store: CartStore = Depends(get_cart_store),
):
    """Current cart, or null when the session has none."""
    return cart_to_response(await store.get_cart(session_id))


@router.post("/cart/items", response_model=CartResponse)
async def add_item(
    payload: AddItemRequest,
    session_id: str = Depends(get_session_id),
    store: CartStore = Depends(get_cart_store),
):
    try:
        cart = await store.add_to_cart(
            session_id,
            payload.vendor.to_domain(),
            payload.menu_item.to_domain(),
            quantity=payload.quantity,
            customizations=[c.to_domain() for c in payload.customizations],
            special_instructions=payload.special_instructions,
        )
    except CartStorageError as e:
        raise _storage_failure(e) from e
    return cart_to_response(cart)


@router.patch("/cart/items", response_model=CartResponse | None)
async def update_item_quantity(
    payload: UpdateQuantityRequest,
    session_id: str = Depends(get_session_id),
    store: CartStore = Depends(get_cart_store),
):
    try:
        cart = await store.update_quantity(
            session_id, payload.menu_item_id, payload.selections(), payload.quantity
        )
    except CartStorageError as e:
        raise _storage_failure(e) from e
    return cart_to_response(cart)


@router.delete("/cart/items", response_model=CartResponse | None)
async def remove_item(
    payload: LineRef,
    session_id: str = Depends(get_session_id),
    store: CartStore = Depends(get_cart_store),
):
    try:
        cart = await store.remove_from_cart(session_id, payload.menu_item_id, payload.selections())
    except CartStorageError as e:
        raise _storage_failure(e) from e
    return cart_to_response(cart)


@router.delete("/cart")
async def clear_cart(
    session_id: str = Depends(get_session_id),
    store: CartStore = Depends(get_cart_store),
):
    try:
        await store.clear_cart(session_id)
    except CartStorageError as e:
        raise _storage_failure(e) from e
    return {"success": True}


@router.post("/cart/promo", response_model=CartResponse | None)
async def apply_promo(
    payload: PromoRequest,
    session_id: str = Depends(get_session_id),
    store: CartStore = Depends(get_cart_store),
):
    try:
        cart = await store.apply_promo_code(session_id, payload.code)
    except InvalidPromoCodeError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except CartStorageError as e:
        raise _storage_failure(e) from e
    return cart_to_response(cart)


@router.delete("/cart/promo", response_model=CartResponse | None)
async def remove_promo(
    session_id: str = Depends(get_session_id),
    store: CartStore = Depends(get_cart_store),
):
    try:
        cart = await store.remove_promo_code(session_id)
    except CartStorageError as e:
        raise _storage_failure(e) from e
    return cart_to_response(cart)
