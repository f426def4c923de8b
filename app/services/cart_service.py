# app/services/cart_service.py
import logging
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import ItemNotFound, ValidationFailed
from app.models.cart import Cart, CartItem
from app.models.product import Product
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import (
    MAX_LINE_QUANTITY,
    CartItemCreate,
    CartItemUpdate,
    CartItemRead,
    CartRead,
)
from app.services.inventory_service import InventoryLedger

logger = logging.getLogger(__name__)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - create the cart lazily on first access
      - validate product existence, active flag and stock (via the ledger)
      - keep each line within [1, MAX_LINE_QUANTITY]
      - recompute total_amount after every mutation
      - hide inactive products on read without deleting their lines
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        inventory: InventoryLedger,
    ):
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.inventory = inventory

    # ---- internal helpers ----

    def get_or_create_cart(self, session: Session, user_id: uuid.UUID) -> Cart:
        cart = self.cart_repo.get_for_user(session, user_id)
        if cart is None:
            cart = self.cart_repo.create(session, Cart(user_id=user_id))
            session.commit()
            session.refresh(cart)
        return cart

    def _visible_lines(
        self,
        session: Session,
        cart: Cart,
    ) -> list[tuple[CartItem, Product]]:
        """
        Cart lines whose product still exists and is active.

        Pure projection: hidden lines stay in the table until the user
        removes them or the cart is cleared.
        """
        items = self.cart_repo.list_items(session, cart.id)
        products = self.product_repo.get_many(session, [it.product_id for it in items])

        lines: list[tuple[CartItem, Product]] = []
        for it in items:
            product = products.get(it.product_id)
            if product is None or not product.is_active:
                continue
            lines.append((it, product))
        return lines

    def _recompute_total(self, session: Session, cart: Cart) -> Cart:
        total = 0.0
        for it, product in self._visible_lines(session, cart):
            total += product.price * it.quantity
        cart.total_amount = round(total, 2)
        cart.updated_at = datetime.now(timezone.utc)
        return self.cart_repo.save(session, cart)

    def _save(self, session: Session, cart: Cart) -> CartRead:
        self._recompute_total(session, cart)
        session.commit()
        session.refresh(cart)
        return self._build_cart_dto(session, cart)

    def _build_cart_dto(self, session: Session, cart: Cart) -> CartRead:
        item_reads: list[CartItemRead] = []
        total_qty = 0
        total_amount = 0.0

        for it, product in self._visible_lines(session, cart):
            line_total = round(product.price * it.quantity, 2)
            total_qty += it.quantity
            total_amount += line_total
            item_reads.append(
                CartItemRead(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    stock=product.stock,
                    image_url=product.image_url,
                    quantity=it.quantity,
                    line_total=line_total,
                )
            )

        return CartRead(
            id=cart.id,
            user_id=cart.user_id,
            items=item_reads,
            total_quantity=total_qty,
            total_amount=round(total_amount, 2),
            updated_at=cart.updated_at,
        )

    # ---- public operations ----

    def get_cart(self, session: Session, user_id: uuid.UUID) -> CartRead:
        """
        Return the user's cart, creating an empty one on first access.
        """
        cart = self.get_or_create_cart(session, user_id)
        return self._build_cart_dto(session, cart)

    def add_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartRead:
        """
        Add a product to the user's cart.

        Rules:
          - product must exist and be active
          - an existing line is merged (quantities summed)
          - merged quantity must stay <= MAX_LINE_QUANTITY and <= stock
        """
        cart = self.get_or_create_cart(session, user_id)
        existing = self.cart_repo.get_item(session, cart.id, payload.product_id)

        new_qty = payload.quantity + (existing.quantity if existing else 0)
        if new_qty > MAX_LINE_QUANTITY:
            raise ValidationFailed(
                f"Quantity cannot exceed {MAX_LINE_QUANTITY}",
                product_id=str(payload.product_id),
            )

        self.inventory.reserve(session, payload.product_id, new_qty)

        if existing:
            existing.quantity = new_qty
            session.add(existing)
        else:
            self.cart_repo.add_item(
                session,
                CartItem(
                    cart_id=cart.id,
                    product_id=payload.product_id,
                    quantity=payload.quantity,
                ),
            )

        return self._save(session, cart)

    def update_quantity(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartRead:
        """
        Set the quantity of a line already in the cart.

        The schema rejects 0; use remove_item to drop a line.
        """
        cart = self.get_or_create_cart(session, user_id)
        item = self.cart_repo.get_item(session, cart.id, product_id)
        if not item:
            raise ItemNotFound(product_id=str(product_id))

        self.inventory.reserve(session, product_id, payload.quantity)

        item.quantity = payload.quantity
        session.add(item)
        return self._save(session, cart)

    def remove_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> CartRead:
        """
        Remove a product from the cart and return the updated cart.
        """
        cart = self.get_or_create_cart(session, user_id)
        item = self.cart_repo.get_item(session, cart.id, product_id)
        if not item:
            raise ItemNotFound(product_id=str(product_id))

        self.cart_repo.delete_item(session, item)
        return self._save(session, cart)

    def clear_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> CartRead:
        """
        Remove every line and return the empty cart.
        """
        cart = self.get_or_create_cart(session, user_id)
        self.cart_repo.clear(session, cart.id)
        return self._save(session, cart)
