# app/services/product_service.py
import math
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import NotFound
from app.models.product import Product
from app.repositories.product_repo import ProductRepository
from app.schemas.product import (
    ProductCreate,
    ProductPage,
    ProductPagination,
    ProductRead,
    ProductUpdate,
)


class ProductService:
    """
    Business logic for the product catalog.

    Responsibilities:
      - storefront listing (active products only, category/search filters)
      - admin create / partial update
      - soft delete (is_active=False) so order history keeps its references
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def list_products(
        self,
        session: Session,
        page: int = 1,
        limit: int = 10,
        category: str | None = None,
        search: str | None = None,
        include_inactive: bool = False,
    ) -> ProductPage:
        """
        One page of the catalog, newest first, with paging metadata.
        """
        filters = dict(
            category=category, search=search, only_active=not include_inactive
        )
        products = self.repo.list_products(
            session, skip=(page - 1) * limit, limit=limit, **filters
        )
        total = self.repo.count_products(session, **filters)
        total_pages = math.ceil(total / limit) if limit else 0

        return ProductPage(
            products=[ProductRead.model_validate(p) for p in products],
            pagination=ProductPagination(
                current_page=page,
                total_pages=total_pages,
                total_products=total,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
        )

    def get_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        include_inactive: bool = False,
    ) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product or (not product.is_active and not include_inactive):
            raise NotFound("Product not found")
        return product

    def create_product(self, session: Session, payload: ProductCreate) -> Product:
        product = Product(**payload.model_dump())
        return self.repo.create(session, product)

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update; only fields present in the payload are touched.

        Price changes never affect existing orders, whose lines carry
        their own price snapshot.
        """
        product = self.get_product(session, product_id, include_inactive=True)

        for field, value in payload.model_dump(exclude_none=True).items():
            if field == "price":
                value = round(value, 2)
            setattr(product, field, value)
        product.updated_at = datetime.now(timezone.utc)

        return self.repo.update(session, product)

    def delete_product(self, session: Session, product_id: uuid.UUID) -> None:
        """
        Soft delete: hide the product from the storefront and carts.
        """
        product = self.get_product(session, product_id, include_inactive=True)
        product.is_active = False
        product.updated_at = datetime.now(timezone.utc)
        self.repo.update(session, product)
