"""Application-wide constants and configuration values.

Centralizes magic numbers so pricing and storage rules live in one place.
"""
from decimal import Decimal

# ============== TIME CONSTANTS (seconds) ==============
SECONDS_PER_MINUTE = 60
SECONDS_PER_DAY = 86400

# ============== CART STORAGE ==============
CART_KEY_PREFIX = "cart"
CART_LOCK_KEY_PREFIX = "cart_lock"
CART_EXPIRY_SECONDS = SECONDS_PER_DAY  # 24 hours of inactivity
CART_LOCK_TTL_SECONDS = 5
CART_LOCK_WAIT_SECONDS = 2.0
CART_DOCUMENT_VERSION = 1

# ============== PRICING ==============
MONEY_QUANTUM = Decimal("0.01")
FREE_DELIVERY_THRESHOLD = Decimal("50")
DEFAULT_DELIVERY_FEE = Decimal("5")
SERVICE_FEE_RATE = Decimal("0.02")

# ============== ORDERS ==============
ESTIMATED_DELIVERY_MINUTES = 30
PAYMENT_METHODS = frozenset({"card", "mobile_money", "cash"})

# ============== VENDOR SIGNUP ==============
DEFAULT_COMMISSION_RATE = 15
DEFAULT_PAYOUT_FREQUENCY = "weekly"
MIN_DELIVERY_RADIUS_KM = 1
DEFAULT_VENDOR_LOGO = (
    "https://images.unsplash.com/photo-1555396273-367ea4eb4db5?w=300&h=300&fit=crop&crop=center"
)
