# app/core/errors.py
"""
Domain errors for the storefront.

Services raise these instead of HTTPException so the same rules can be
exercised from tests without an HTTP round trip. `app.main` registers a
handler that renders any ShopError as:

    {"message": ..., "code": ..., **details}
"""
from typing import Any

from fastapi import status


class ShopError(Exception):
    """Base class for all domain errors."""

    code: str = "shop_error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Request could not be processed"

    def __init__(self, message: str | None = None, **details: Any):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, **self.details}


class ValidationFailed(ShopError):
    code = "validation_error"
    message = "Validation failed"


class NotFound(ShopError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class ItemNotFound(NotFound):
    code = "item_not_found"
    message = "Item not found in cart"


class EmptyCart(ShopError):
    code = "empty_cart"
    message = "Cart is empty"


class ProductUnavailable(ShopError):
    code = "product_unavailable"
    message = "Product is no longer available"


class OutOfStock(ShopError):
    code = "out_of_stock"
    message = "Not enough stock available"


class InsufficientStock(OutOfStock):
    code = "insufficient_stock"


class InvalidPaymentData(ShopError):
    code = "invalid_payment_data"
    message = "Invalid payment data"


class PaymentFailed(ShopError):
    code = "payment_failed"
    message = "Payment failed"


class InvalidTransition(ShopError):
    code = "invalid_transition"

    def __init__(self, current: str, target: str, valid_transitions: list[str]):
        self.current = current
        self.target = target
        self.valid_transitions = valid_transitions
        super().__init__(
            f"Invalid status transition from {current} to {target}",
            current_status=current,
            requested_status=target,
            valid_transitions=valid_transitions,
        )
