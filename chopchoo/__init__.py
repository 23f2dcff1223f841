"""Chopchoo storefront core: session carts, promo codes, checkout, vendor signup."""

__version__ = "1.0.0"
