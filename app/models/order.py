# app/models/order.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order, created at checkout from a cart snapshot.

    The row is written before payment is attempted, so a failed payment
    still leaves an order behind (status=pending, payment_status=failed).
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    # ORD-YYYYMMDD-XXXXXX
    order_number: str = Field(
        unique=True,
        index=True,
        description="Human readable order reference",
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    # Shipping address
    street: str
    city: str
    state: str
    zip_code: str
    country: str

    # credit_card | debit_card | paypal | bank_transfer
    payment_method: str

    # pending | confirmed | shipped | delivered | cancelled
    status: str = Field(
        default="pending",
        index=True,
        description="Order status lifecycle",
    )

    # pending | paid | failed | refunded
    payment_status: str = Field(
        default="pending",
        index=True,
        description="Payment outcome",
    )

    transaction_id: str | None = Field(
        default=None,
        description="Payment receipt id, set when paid",
    )

    total_amount: float = Field(
        ge=0,
        description="Sum of snapshotted line totals",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last status change (UTC)",
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order.

    name and price are frozen at checkout time and never follow
    later product edits.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    name: str

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    price: float = Field(
        ge=0,
        description="Unit price at time of order",
    )
