"""
FastAPI server exposing session carts and checkout.

Run with ``python -m chopchoo.api.api_server``.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chopchoo import __version__
from chopchoo.api.common import set_services
from chopchoo.api.routes_cart import router as cart_router
from chopchoo.api.routes_orders import router as orders_router
from chopchoo.core.config import Settings, load_settings
from chopchoo.integrations.cart_storage import create_cart_storage
from chopchoo.logging_config import setup_logging
from chopchoo.services.cart_service import CartStore
from chopchoo.services.order_service import OrderService

logger = logging.getLogger(__name__)


def create_api_app(
    cart_store: CartStore | None = None,
    order_service: OrderService | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        cart_store: Prebuilt cart store; built from settings when omitted
        order_service: Prebuilt order service; wraps ``cart_store`` when omitted
        settings: Settings to build missing services from
    """
    if cart_store is None:
        settings = settings or load_settings()
        cart_store = CartStore(
            create_cart_storage(settings),
            ordered_customization_match=settings.cart.ordered_customization_match,
        )
    if order_service is None:
        order_service = OrderService(cart_store)

    # Set immediately so routes work even when lifespan events are not triggered
    set_services(cart_store, order_service)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Cart API starting...")
        set_services(cart_store, order_service)
        yield
        logger.info("Cart API shutting down...")

    app = FastAPI(
        title="Chopchoo Cart API",
        description="Session carts, promo codes and checkout",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )

    allowed_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Session-Id"],
    )

    app.include_router(cart_router, prefix="/api/v1", tags=["cart"])
    app.include_router(orders_router, prefix="/api/v1", tags=["orders"])

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


def run_api_server(settings: Settings | None = None) -> None:
    settings = settings or load_settings()
    setup_logging(settings.log_level)
    app = create_api_app(settings=settings)
    logger.info("Starting Cart API on %s:%s", settings.api_host, settings.api_port)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level="info")


if __name__ == "__main__":
    run_api_server()
