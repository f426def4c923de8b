# app/services/inventory_service.py
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlmodel import Session

from app.core.errors import NotFound, OutOfStock, ProductUnavailable
from app.models.product import Product
from app.repositories.product_repo import ProductRepository

logger = logging.getLogger(__name__)


class InventoryLedger:
    """
    Owns per-product stock counts.

    - reserve: sufficiency check only, never mutates.
    - commit: single conditional UPDATE, so two concurrent checkouts can
      never drive stock below zero; the loser gets OutOfStock.

    Nothing here commits the session; callers own the transaction.
    """

    def __init__(self, product_repo: ProductRepository):
        self.product_repo = product_repo

    def _get_available(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if product is None:
            raise NotFound("Product not found", product_id=str(product_id))
        if not product.is_active:
            raise ProductUnavailable(
                f"Product {product.name} is no longer available",
                product_id=str(product_id),
            )
        return product

    @staticmethod
    def _shortage(
        product: Product,
        quantity: int,
        error: type[OutOfStock] = OutOfStock,
    ) -> OutOfStock:
        return error(
            f"Insufficient stock for {product.name}. "
            f"Available: {product.stock}, Requested: {quantity}",
            product_id=str(product.id),
            available=product.stock,
            requested=quantity,
        )

    def reserve(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
        error: type[OutOfStock] = OutOfStock,
    ) -> Product:
        """
        Check that `quantity` units could be taken right now.

        Returns the freshly read product.
        """
        product = self._get_available(session, product_id)
        if product.stock < quantity:
            raise self._shortage(product, quantity, error)
        return product

    def commit(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
    ) -> Product:
        """
        Atomically take `quantity` units.

        The stock guard is part of the UPDATE itself, so the check and the
        decrement happen in one statement.
        """
        products = Product.__table__
        stmt = (
            update(products)
            .where(
                products.c.id == product_id,
                products.c.is_active == True,  # noqa: E712
                products.c.stock >= quantity,
            )
            .values(
                stock=products.c.stock - quantity,
                updated_at=datetime.now(timezone.utc),
            )
        )
        result = session.connection().execute(stmt)

        product = self.product_repo.get_by_id(session, product_id)
        if product is not None:
            # The UPDATE bypassed the identity map.
            session.refresh(product)

        if result.rowcount == 1:
            logger.info(
                "Committed %s unit(s) of product %s, %s left",
                quantity, product_id, product.stock,
            )
            return product

        if product is None:
            raise NotFound("Product not found", product_id=str(product_id))
        if not product.is_active:
            raise ProductUnavailable(
                f"Product {product.name} is no longer available",
                product_id=str(product_id),
            )
        raise self._shortage(product, quantity)

