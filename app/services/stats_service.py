# app/services/stats_service.py
from datetime import datetime, timedelta, timezone

from sqlmodel import Session

from app.core.errors import ValidationFailed
from app.repositories.stats_repo import StatsRepository
from app.schemas.order import OrderPage
from app.schemas.stats import (
    AdminOrderPage,
    AdminOrderStatistics,
    OrderStats,
    OrderStatusCounts,
    PaymentStatusCounts,
)


class StatsService:
    """
    Orchestrates aggregated order statistics for admins.
    """

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    def admin_order_page(self, session: Session, page: OrderPage) -> AdminOrderPage:
        """
        Attach overall (unfiltered) statistics to a page of orders.
        """
        total_orders, total_revenue, _ = self.repo.totals(session)
        by_status = self.repo.count_by_status(session)

        return AdminOrderPage(
            orders=page.orders,
            pagination=page.pagination,
            statistics=AdminOrderStatistics(
                total_orders=total_orders,
                total_revenue=round(total_revenue, 2),
                by_status=OrderStatusCounts(**by_status),
            ),
        )

    def order_stats(self, session: Session, period_days: int = 30) -> OrderStats:
        """
        Statistics over orders created in the last `period_days` days.
        """
        if period_days < 1:
            raise ValidationFailed("period must be a positive number of days")

        end_date = datetime.now(timezone.utc)
        start_date = end_date - timedelta(days=period_days)

        total_orders, total_revenue, average = self.repo.totals(session, since=start_date)
        by_status = self.repo.count_by_status(session, since=start_date)
        by_payment = self.repo.count_by_payment_status(session, since=start_date)

        return OrderStats(
            period_days=period_days,
            start_date=start_date,
            end_date=end_date,
            total_orders=total_orders,
            total_revenue=round(total_revenue, 2),
            average_order_value=round(average, 2),
            status_breakdown=OrderStatusCounts(**by_status),
            payment_status_breakdown=PaymentStatusCounts(**by_payment),
        )
