"""Custom exceptions for the Chopchoo storefront."""
from __future__ import annotations


class ChopchooException(Exception):
    """Base exception for all Chopchoo errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationException(ChopchooException):
    """Input validation errors."""

    pass


class InvalidPromoCodeError(ValidationException):
    """Promo code is unknown or not applicable to the cart."""

    def __init__(self, code: str, reason: str = "Invalid promo code") -> None:
        super().__init__(reason)
        self.code = code


class OrderValidationError(ValidationException):
    """Cart or delivery details are not fit for checkout."""

    pass


class SignupValidationError(ValidationException):
    """Vendor signup form failed step validation."""

    def __init__(self, step: int, reason: str) -> None:
        super().__init__(reason)
        self.step = step


class CartStorageError(ChopchooException):
    """Persisting a cart document failed."""

    def __init__(self, key: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Failed to persist cart {key}: {cause}")
        self.key = key
        self.cause = cause


class ConfigurationException(ChopchooException):
    """Configuration errors."""

    pass
