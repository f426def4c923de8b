# app/repositories/product_repo.py
import uuid

from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from app.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_many(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        if not product_ids:
            return {}
        stmt = select(Product).where(col(Product.id).in_(product_ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def _filtered(
        self,
        stmt,
        category: str | None,
        search: str | None,
        only_active: bool,
    ):
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        if category:
            stmt = stmt.where(Product.category == category)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    col(Product.name).ilike(pattern),
                    col(Product.description).ilike(pattern),
                )
            )
        return stmt

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        category: str | None = None,
        search: str | None = None,
        only_active: bool = True,
    ) -> list[Product]:
        stmt = self._filtered(select(Product), category, search, only_active)
        stmt = stmt.order_by(col(Product.created_at).desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def count_products(
        self,
        session: Session,
        category: str | None = None,
        search: str | None = None,
        only_active: bool = True,
    ) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(Product), category, search, only_active
        )
        return int(session.exec(stmt).one() or 0)

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product
