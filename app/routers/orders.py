# app/routers/orders.py
import uuid
from functools import lru_cache

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import require_customer, require_admin
from app.core.config import get_settings
from app.database import get_session
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    OrderPage,
    OrderStatus,
    OrderStatusUpdate,
    OrderWithItemsRead,
    StatusChangeResponse,
)
from app.services.inventory_service import InventoryLedger
from app.services.order_service import OrderService
from app.services.payment_service import PaymentSimulator

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
cart_repo = CartRepository()
product_repo = ProductRepository()
service = OrderService(order_repo, cart_repo, InventoryLedger(product_repo))


@lru_cache
def get_payment_simulator() -> PaymentSimulator:
    """
    Payment collaborator for checkout.

    Tests override this dependency with a deterministic simulator.
    """
    settings = get_settings()
    return PaymentSimulator(
        success_rate=settings.PAYMENT_SUCCESS_RATE,
        delay_seconds=settings.PAYMENT_DELAY_SECONDS,
    )


# -------- User-facing endpoints --------


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
    payment: PaymentSimulator = Depends(get_payment_simulator),
):
    """
    Create an order from the current user's cart and pay for it.

    - 201 with order + payment receipt when the payment goes through.
    - 400 with the order's id / order_number / status / payment_status
      when the payment is declined; the cart is kept for a retry.

    Auth:
      - Only role='customer' can checkout.
    """
    return service.checkout(session, current_user.id, payload, payment)


@router.get("", response_model=OrderPage)
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
    status: OrderStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
):
    """
    List the authenticated user's orders (without items).
    """
    return service.list_user_orders(
        session, current_user.id, status=status, page=page, limit=limit
    )


@router.get("/{order_id}", response_model=OrderWithItemsRead)
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Get a single order (with items) belonging to the current user.
    """
    return service.get_user_order(session, current_user.id, order_id)


# -------- Admin endpoints --------


@router.patch(
    "/{order_id}/status",
    response_model=StatusChangeResponse,
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Update order status (admin only).

      pending   -> confirmed, cancelled

      confirmed -> shipped, cancelled

      shipped   -> delivered

      delivered, cancelled -> (terminal)

    A rejected change answers 400 with `valid_transitions`.
    """
    return service.update_status(session, order_id, payload)
