# app/schemas/cart.py
import uuid
from datetime import datetime

from sqlmodel import SQLModel, Field

MAX_LINE_QUANTITY = 100


class CartItemCreate(SQLModel):
    """
    Payload for adding to cart.
    """

    product_id: uuid.UUID
    quantity: int = Field(ge=1, le=MAX_LINE_QUANTITY)


class CartItemUpdate(SQLModel):
    """
    Payload for updating quantity of a cart item.

    0 is rejected; removing a line goes through DELETE /cart/items/{id}.
    """

    quantity: int = Field(ge=1, le=MAX_LINE_QUANTITY)


class CartItemRead(SQLModel):
    """
    Read model for a single cart item, priced from the live product.
    """

    product_id: uuid.UUID
    name: str
    price: float
    stock: int
    image_url: str | None = None
    quantity: int
    line_total: float


class CartRead(SQLModel):
    """
    Full cart response model with totals.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    items: list[CartItemRead]
    total_quantity: int
    total_amount: float
    updated_at: datetime
