# app/schemas/stats.py
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel

from app.schemas.order import OrderRead, Pagination


class OrderStatusCounts(SQLModel):
    """
    Order counts per lifecycle status (zero-filled).
    """
    model_config = ConfigDict(extra="forbid")

    pending: int = 0
    confirmed: int = 0
    shipped: int = 0
    delivered: int = 0
    cancelled: int = 0


class PaymentStatusCounts(SQLModel):
    """
    Order counts per payment status (zero-filled).
    """
    model_config = ConfigDict(extra="forbid")

    pending: int = 0
    paid: int = 0
    failed: int = 0
    refunded: int = 0


class AdminOrderStatistics(SQLModel):
    model_config = ConfigDict(extra="forbid")

    total_orders: int
    total_revenue: float
    by_status: OrderStatusCounts


class AdminOrderPage(SQLModel):
    """
    Admin order listing: page of orders, paging info, overall statistics.
    """

    orders: list[OrderRead]
    pagination: Pagination
    statistics: AdminOrderStatistics


class OrderStats(SQLModel):
    """
    Aggregated order statistics for the last `period_days` days.
    """
    model_config = ConfigDict(extra="forbid")

    period_days: int
    start_date: datetime
    end_date: datetime
    total_orders: int
    total_revenue: float
    average_order_value: float
    status_breakdown: OrderStatusCounts
    payment_status_breakdown: PaymentStatusCounts
