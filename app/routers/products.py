# app/routers/products.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from app.core.auth import get_current_user, require_admin
from app.database import get_session
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductCreate, ProductPage, ProductRead, ProductUpdate
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

service = ProductService(ProductRepository())


def _is_admin(user: User | None) -> bool:
    return user is not None and user.role == "admin"


# -------- Storefront (anonymous allowed) --------


@router.get("", response_model=ProductPage)
def list_products(
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    category: str | None = None,
    search: str | None = None,
    include_inactive: bool = False,
):
    """
    Catalog listing, newest first, with paging metadata.

    - `category` filters by exact category.
    - `search` matches name or description (case-insensitive).
    - `include_inactive` is honoured for admins only.
    """
    return service.list_products(
        session,
        page=page,
        limit=limit,
        category=category,
        search=search,
        include_inactive=include_inactive and _is_admin(current_user),
    )


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
):
    """
    Single product. Deactivated products are 404 except for admins.
    """
    return service.get_product(
        session, product_id, include_inactive=_is_admin(current_user)
    )


# -------- Catalog management (admin) --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """
    Create a new product (admin only).
    """
    return service.create_product(session, payload)


@router.patch(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_admin)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """
    Update an existing product (admin only).
    """
    return service.update_product(session, product_id, payload)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Deactivate a product (admin only).

    The row is kept so existing orders and carts still resolve it.
    """
    service.delete_product(session, product_id)
    return None
