# app/repositories/stats_repo.py
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, col, select

from app.models.order import Order


class StatsRepository:
    """
    Read-only aggregated order queries for the admin views.

    Every query takes an optional `since` bound on Order.created_at.
    """

    def _since(self, stmt, since: datetime | None):
        if since is not None:
            stmt = stmt.where(Order.created_at >= since)
        return stmt

    def totals(
        self,
        session: Session,
        since: datetime | None = None,
    ) -> tuple[int, float, float]:
        """
        (order count, revenue, average order value) over all orders.
        """
        stmt = select(
            func.count(col(Order.id)),
            func.coalesce(func.sum(Order.total_amount), 0.0),
            func.coalesce(func.avg(Order.total_amount), 0.0),
        ).select_from(Order)
        count, revenue, average = session.exec(self._since(stmt, since)).one()
        return int(count or 0), float(revenue or 0.0), float(average or 0.0)

    def count_by_status(
        self,
        session: Session,
        since: datetime | None = None,
    ) -> dict[str, int]:
        stmt = select(Order.status, func.count(col(Order.id))).group_by(Order.status)
        rows = session.exec(self._since(stmt, since)).all()
        return {status: int(n) for status, n in rows}

    def count_by_payment_status(
        self,
        session: Session,
        since: datetime | None = None,
    ) -> dict[str, int]:
        stmt = select(Order.payment_status, func.count(col(Order.id))).group_by(
            Order.payment_status
        )
        rows = session.exec(self._since(stmt, since)).all()
        return {status: int(n) for status, n in rows}
