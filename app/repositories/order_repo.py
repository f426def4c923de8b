# app/repositories/order_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, col, select

from app.models.order import Order, OrderItem

SORTABLE_COLUMNS = {
    "created_at": Order.created_at,
    "total_amount": Order.total_amount,
}


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - No commits here; order creation is a multi-step transaction.
        The service is responsible for calling session.commit().
    """

    # ---- Orders ----

    def _filtered(self, stmt, user_id, status, payment_status):
        if user_id is not None:
            stmt = stmt.where(Order.user_id == user_id)
        if status:
            stmt = stmt.where(Order.status == status)
        if payment_status:
            stmt = stmt.where(Order.payment_status == payment_status)
        return stmt

    def list_orders(
        self,
        session: Session,
        user_id: uuid.UUID | None = None,
        status: str | None = None,
        payment_status: str | None = None,
        skip: int = 0,
        limit: int = 10,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> list[Order]:
        column = col(SORTABLE_COLUMNS.get(sort_by, Order.created_at))
        stmt = self._filtered(select(Order), user_id, status, payment_status)
        stmt = (
            stmt.order_by(column.desc() if descending else column.asc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def count_orders(
        self,
        session: Session,
        user_id: uuid.UUID | None = None,
        status: str | None = None,
        payment_status: str | None = None,
    ) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(Order), user_id, status, payment_status
        )
        return int(session.exec(stmt).one() or 0)

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def get_by_number(self, session: Session, order_number: str) -> Order | None:
        stmt = select(Order).where(Order.order_number == order_number)
        return session.exec(stmt).first()

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        session.refresh(order)
        return order

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id)
        return session.exec(stmt).all()

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        for item in items:
            session.refresh(item)
        return items
