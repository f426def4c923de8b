# app/services/order_service.py
import logging
import math
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidPaymentData,
    NotFound,
    OutOfStock,
    PaymentFailed,
    ProductUnavailable,
)
from app.models.order import Order, OrderItem
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    OrderItemRead,
    OrderPage,
    OrderRead,
    OrderStatusUpdate,
    OrderWithItemsRead,
    Pagination,
    ShippingAddress,
    StatusChangeResponse,
)
from app.services.inventory_service import InventoryLedger
from app.services.order_state import transition
from app.services.payment_service import PaymentSimulator, validate_payment_data

logger = logging.getLogger(__name__)


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Checkout: turn the cart into an order, take payment, commit stock
      - Read the caller's own orders
      - Status changes, always through app.services.order_state
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        inventory: InventoryLedger,
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.inventory = inventory

    # -------- Checkout --------

    def _new_order_number(self, session: Session) -> str:
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        while True:
            candidate = f"ORD-{today}-{uuid.uuid4().hex[:6].upper()}"
            if self.order_repo.get_by_number(session, candidate) is None:
                return candidate

    def checkout(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CheckoutRequest,
        payment: PaymentSimulator,
    ) -> CheckoutResponse:
        """
        Convert the current user's cart into an order and pay for it.

        Steps:
          1. Cart must have items (EmptyCart).
          2. Payment data must fit the method (InvalidPaymentData).
          3. Re-read every product: active and stock >= quantity
             (ProductUnavailable / InsufficientStock). No order yet.
          4. Snapshot name/price/quantity per line; total from snapshot.
          5. Persist order pending/pending and commit it.
          6. Run the payment.
          7. Paid: confirm, commit stock per line, clear cart.
          8. Declined: payment_status=failed, keep cart and stock,
             raise PaymentFailed carrying the order identity.
        """
        # 1) Load cart
        cart = self.cart_repo.get_for_user(session, user_id)
        cart_items = self.cart_repo.list_items(session, cart.id) if cart else []
        if not cart_items:
            raise EmptyCart()

        # 2) Cheap validation first
        problems = validate_payment_data(payload.payment_method, payload.payment_data)
        if problems:
            raise InvalidPaymentData(errors=problems)

        # 3) + 4) Validate against live products and snapshot lines
        snapshot: list[OrderItem] = []
        for ci in cart_items:
            try:
                product = self.inventory.reserve(
                    session, ci.product_id, ci.quantity, error=InsufficientStock
                )
            except NotFound:
                raise ProductUnavailable(
                    "Product is no longer available",
                    product_id=str(ci.product_id),
                )
            snapshot.append(
                OrderItem(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    quantity=ci.quantity,
                )
            )

        total_amount = round(sum(it.price * it.quantity for it in snapshot), 2)

        # 5) Audit row, committed before any money moves
        address = payload.shipping_address
        order = Order(
            order_number=self._new_order_number(session),
            user_id=user_id,
            street=address.street,
            city=address.city,
            state=address.state,
            zip_code=address.zip_code,
            country=address.country,
            payment_method=payload.payment_method,
            status="pending",
            payment_status="pending",
            total_amount=total_amount,
        )
        order = self.order_repo.create_order(session, order)
        for it in snapshot:
            it.order_id = order.id
        order_items = self.order_repo.create_items(session, snapshot)
        session.commit()
        logger.info(
            "Order %s created for user %s: %d line(s), total %.2f",
            order.order_number, user_id, len(order_items), total_amount,
        )

        # 6) Payment
        try:
            receipt = payment.simulate(
                total_amount,
                payload.payment_method,
                payload.payment_data,
                reference=order.order_number,
            )
        except PaymentFailed as exc:
            # 8) Declined: record it, leave cart and stock alone
            order.payment_status = "failed"
            order.updated_at = datetime.now(timezone.utc)
            self.order_repo.update_order(session, order)
            session.commit()
            logger.warning("Payment failed for order %s", order.order_number)
            raise PaymentFailed(
                "Payment failed",
                error=exc.message,
                order={
                    "id": str(order.id),
                    "order_number": order.order_number,
                    "status": order.status,
                    "payment_status": order.payment_status,
                },
            )

        # 7) Paid
        transition(order, "confirmed")
        order.payment_status = "paid"
        order.updated_at = datetime.now(timezone.utc)
        order.transaction_id = receipt.transaction_id
        self.order_repo.update_order(session, order)

        unfulfilled: list[uuid.UUID] = []
        for it in order_items:
            try:
                self.inventory.commit(session, it.product_id, it.quantity)
            except (OutOfStock, ProductUnavailable, NotFound) as exc:
                # Lost the race since step 3; siblings stay committed.
                logger.error(
                    "Stock commit failed for order %s, product %s: %s",
                    order.order_number, it.product_id, exc.message,
                )
                unfulfilled.append(it.product_id)

        self.cart_repo.clear(session, cart.id)
        cart.total_amount = 0.0
        cart.updated_at = datetime.now(timezone.utc)
        self.cart_repo.save(session, cart)

        session.commit()
        session.refresh(order)
        logger.info(
            "Order %s confirmed (txn=%s)", order.order_number, receipt.transaction_id
        )

        return CheckoutResponse(
            order=self._build_order_with_items_dto(order, order_items),
            payment=receipt,
            unfulfilled_items=unfulfilled,
        )

    # -------- User-facing reads --------

    def list_user_orders(
        self,
        session: Session,
        user_id: uuid.UUID,
        status: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> OrderPage:
        """
        List the user's orders (without items), newest first.
        """
        return self.list_orders(
            session, user_id=user_id, status=status, page=page, limit=limit
        )

    def get_user_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        """
        Get a single order for the user, including items.

        - 404 if order not found or does not belong to this user.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or order.user_id != user_id:
            raise NotFound("Order not found")

        items = self.order_repo.list_items_for_order(session, order.id)
        return self._build_order_with_items_dto(order, items)

    # -------- Shared listing --------

    def list_orders(
        self,
        session: Session,
        user_id: uuid.UUID | None = None,
        status: str | None = None,
        payment_status: str | None = None,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> OrderPage:
        skip = (page - 1) * limit
        orders = self.order_repo.list_orders(
            session,
            user_id=user_id,
            status=status,
            payment_status=payment_status,
            skip=skip,
            limit=limit,
            sort_by=sort_by,
            descending=descending,
        )
        total = self.order_repo.count_orders(
            session, user_id=user_id, status=status, payment_status=payment_status
        )
        total_pages = math.ceil(total / limit) if limit else 0

        return OrderPage(
            orders=[OrderRead.model_validate(o) for o in orders],
            pagination=Pagination(
                current_page=page,
                total_pages=total_pages,
                total_orders=total,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
        )

    # -------- Admin status guard --------

    def update_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> StatusChangeResponse:
        """
        Admin status change.

        Re-reads the order from the database, then applies the state
        machine. InvalidTransition carries the statuses that would have
        been accepted.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFound("Order not found")
        session.refresh(order)

        previous = order.status
        transition(order, payload.status)
        order.updated_at = datetime.now(timezone.utc)
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)

        logger.info(
            "Order %s status changed %s -> %s",
            order.order_number, previous, order.status,
        )
        return StatusChangeResponse(
            order=OrderRead.model_validate(order),
            previous_status=previous,
        )

    # -------- Helper DTO builder --------

    def _build_order_with_items_dto(
        self,
        order: Order,
        items: list[OrderItem],
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead from ORM models.
        """
        item_dtos = [
            OrderItemRead(
                product_id=it.product_id,
                name=it.name,
                price=it.price,
                quantity=it.quantity,
                line_total=round(it.price * it.quantity, 2),
            )
            for it in items
        ]

        return OrderWithItemsRead(
            id=order.id,
            order_number=order.order_number,
            user_id=order.user_id,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            total_amount=order.total_amount,
            created_at=order.created_at,
            updated_at=order.updated_at,
            shipping_address=ShippingAddress(
                street=order.street,
                city=order.city,
                state=order.state,
                zip_code=order.zip_code,
                country=order.country,
            ),
            transaction_id=order.transaction_id,
            items=item_dtos,
        )
