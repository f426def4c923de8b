# app/schemas/order.py
import re
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
PaymentMethod = Literal["credit_card", "debit_card", "paypal", "bank_transfer"]
Currency = Literal["USD", "EUR", "GBP", "CAD"]

ZIP_CODE_RE = re.compile(r"\d{5}(-\d{4})?")


class ShippingAddress(SQLModel):
    """
    Delivery address; every field is required.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    street: str = Field(min_length=5, max_length=200)
    city: str = Field(min_length=2, max_length=50)
    state: str = Field(min_length=2, max_length=50)
    zip_code: str
    country: str = Field(min_length=2, max_length=50)

    @field_validator("zip_code")
    @classmethod
    def valid_zip(cls, v: str) -> str:
        if not ZIP_CODE_RE.fullmatch(v):
            raise ValueError("zip code must be 12345 or 12345-6789")
        return v


class PaymentData(SQLModel):
    """
    Payment metadata submitted with checkout.

    Method-specific requirements (card number, expiry, CVV for card
    methods) are checked by the checkout service so they surface as
    InvalidPaymentData rather than a generic validation error.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    amount: float = Field(gt=0)
    currency: Currency = "USD"
    card_number: str | None = None
    expiry_date: str | None = None
    cvv: str | None = None


class CheckoutRequest(SQLModel):
    """
    Payload for turning the current cart into an order.

    Backend derives:
      - user_id from token
      - items and total_amount from the cart at checkout time
      - status='pending', payment_status='pending' until payment resolves
    """

    model_config = ConfigDict(extra="forbid")

    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    payment_data: PaymentData


class OrderItemRead(SQLModel):
    """
    Frozen order line.
    """

    product_id: uuid.UUID
    name: str
    price: float
    quantity: int
    line_total: float


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    order_number: str
    user_id: uuid.UUID
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    total_amount: float
    created_at: datetime
    updated_at: datetime


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items and shipping address.
    """

    shipping_address: ShippingAddress
    transaction_id: str | None = None
    items: list[OrderItemRead]


class PaymentReceipt(SQLModel):
    """
    Successful payment outcome returned by the payment simulator.
    """

    transaction_id: str
    amount: float
    currency: Currency
    message: str = "Payment processed successfully"
    timestamp: datetime


class CheckoutResponse(SQLModel):
    """
    Successful checkout: the confirmed order plus the payment receipt.

    unfulfilled_items lists product ids whose stock was taken by a
    concurrent checkout between validation and commit.
    """

    message: str = "Order placed successfully"
    order: OrderWithItemsRead
    payment: PaymentReceipt
    unfulfilled_items: list[uuid.UUID] = []


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus


class Pagination(SQLModel):
    current_page: int
    total_pages: int
    total_orders: int
    has_next: bool
    has_prev: bool


class OrderPage(SQLModel):
    """
    Paged list of orders.
    """

    orders: list[OrderRead]
    pagination: Pagination


class StatusChangeResponse(SQLModel):
    """
    Result of an admin status change.
    """

    message: str = "Order status updated successfully"
    order: OrderRead
    previous_status: OrderStatus
