from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from chopchoo.core.exceptions import CartStorageError, OrderValidationError
from chopchoo.domain.order import DeliveryAddress
from chopchoo.services.order_service import OrderService

from .common import PlaceOrderRequest, get_order_service, get_session_id, logger

router = APIRouter()


@router.post("/orders")
async def place_order(
    payload: PlaceOrderRequest,
    session_id: str = Depends(get_session_id),
    service: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    """Submit the session cart as an order and empty the cart."""
    try:
        order = await service.place_order(
            session_id,
            DeliveryAddress.from_dict(payload.delivery_address.model_dump()),
            payload.payment_method,
            special_instructions=payload.special_instructions,
        )
    except OrderValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except CartStorageError as e:
        logger.error("Order for session %s placed but cart not cleared: %s", session_id, e.message)
        raise HTTPException(status_code=503, detail="Order placed, cart could not be cleared") from e

    return {
        "success": True,
        "order": order.to_dict(),
        "message": "Order placed successfully!",
    }
