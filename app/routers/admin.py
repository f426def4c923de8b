# app/routers/admin.py
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.stats_repo import StatsRepository
from app.routers.orders import service as order_service
from app.schemas.order import (
    OrderStatus,
    OrderStatusUpdate,
    PaymentStatus,
    StatusChangeResponse,
)
from app.schemas.stats import AdminOrderPage, OrderStats
from app.services.stats_service import StatsService

router = APIRouter(
    prefix="/admin/orders",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)

stats_service = StatsService(StatsRepository())


@router.get("", response_model=AdminOrderPage)
def list_all_orders(
    session: Session = Depends(get_session),
    status: OrderStatus | None = None,
    payment_status: PaymentStatus | None = None,
    sort_by: Literal["created_at", "total_amount"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
):
    """
    List all orders with filters, paging and overall statistics.
    """
    orders = order_service.list_orders(
        session,
        status=status,
        payment_status=payment_status,
        page=page,
        limit=limit,
        sort_by=sort_by,
        descending=sort_order == "desc",
    )
    return stats_service.admin_order_page(session, orders)


@router.get("/stats", response_model=OrderStats)
def get_order_stats(
    session: Session = Depends(get_session),
    period: int = Query(default=30, ge=1, le=3650),
):
    """
    Aggregated statistics for orders created in the last `period` days.
    """
    return stats_service.order_stats(session, period_days=period)


@router.patch("/{order_id}/status", response_model=StatusChangeResponse)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Update order status through the shared state machine.
    """
    return order_service.update_status(session, order_id, payload)
