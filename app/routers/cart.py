# app/routers/cart.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_customer
from app.database import get_session
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import CartRead, CartItemCreate, CartItemUpdate
from app.services.cart_service import CartService
from app.services.inventory_service import InventoryLedger

router = APIRouter(prefix="/cart", tags=["Cart"])

cart_repo = CartRepository()
product_repo = ProductRepository()
service = CartService(cart_repo, product_repo, InventoryLedger(product_repo))


@router.get("", response_model=CartRead)
def get_my_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Get current user's cart.

    Auth:
      - Only role='customer' can access.
      - Admins are forbidden.
    """
    return service.get_cart(session, current_user.id)


@router.post("/items", response_model=CartRead)
def add_to_cart(
    payload: CartItemCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Add product to the current user's cart.

    Returns the updated cart.
    """
    return service.add_item(session, current_user.id, payload)


@router.patch("/items/{product_id}", response_model=CartRead)
def update_cart_item(
    product_id: uuid.UUID,
    payload: CartItemUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Update quantity of a product in the cart.

    Returns the updated cart.
    """
    return service.update_quantity(
        session=session,
        user_id=current_user.id,
        product_id=product_id,
        payload=payload,
    )


@router.delete("/items/{product_id}", response_model=CartRead)
def remove_cart_item(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Remove a product from the cart.

    Returns the updated cart.
    """
    return service.remove_item(session, current_user.id, product_id)


@router.delete("", response_model=CartRead)
def clear_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_customer),
):
    """
    Clear the entire cart.

    Returns an empty cart.
    """
    return service.clear_cart(session, current_user.id)
