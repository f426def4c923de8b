"""Tests for checkout and order reads in the order service."""

import uuid

import pytest
from pydantic import ValidationError
from sqlmodel import select

from app.core.errors import (
    EmptyCart,
    InsufficientStock,
    InvalidPaymentData,
    NotFound,
    PaymentFailed,
    ProductUnavailable,
)
from app.models.cart import CartItem
from app.models.order import Order, OrderItem
from app.schemas.cart import CartItemCreate
from app.schemas.order import (
    CheckoutRequest,
    OrderStatusUpdate,
    PaymentData,
    ShippingAddress,
)
from app.services.payment_service import PaymentSimulator, validate_payment_data


@pytest.fixture
def fill_cart(session, cart_service, customer):
    def _fill(*lines):
        for product, quantity in lines:
            cart_service.add_item(
                session,
                customer.id,
                CartItemCreate(product_id=product.id, quantity=quantity),
            )

    return _fill


@pytest.fixture
def request_body(checkout_payload):
    return CheckoutRequest.model_validate(checkout_payload)


def all_orders(session):
    return session.exec(select(Order)).all()


class TestCheckoutSuccess:
    def test_two_line_checkout(
        self, session, order_service, customer, make_product, fill_cart,
        request_body, payment,
    ):
        desk = make_product(name="Desk", price=10.0, stock=5)
        lamp = make_product(name="Lamp", price=5.0, stock=5)
        fill_cart((desk, 2), (lamp, 1))

        result = order_service.checkout(session, customer.id, request_body, payment)

        order = result.order
        assert order.total_amount == 25.0
        assert order.status == "confirmed"
        assert order.payment_status == "paid"
        assert order.transaction_id == result.payment.transaction_id
        assert order.transaction_id.startswith("TXN_")
        assert order.order_number.startswith("ORD-")
        assert order.shipping_address.city == "Springfield"
        assert {(it.name, it.quantity, it.price) for it in order.items} == {
            ("Desk", 2, 10.0),
            ("Lamp", 1, 5.0),
        }
        assert result.unfulfilled_items == []

        session.refresh(desk)
        session.refresh(lamp)
        assert desk.stock == 3
        assert lamp.stock == 4
        assert session.exec(select(CartItem)).all() == []

    def test_snapshot_ignores_later_price_change(
        self, session, order_service, customer, make_product, fill_cart,
        request_body, payment,
    ):
        desk = make_product(price=10.0)
        fill_cart((desk, 1))
        result = order_service.checkout(session, customer.id, request_body, payment)

        desk.price = 99.0
        session.add(desk)
        session.commit()

        order = order_service.get_user_order(session, customer.id, result.order.id)
        assert order.items[0].price == 10.0
        assert order.total_amount == 10.0

    def test_total_uses_price_at_checkout(
        self, session, order_service, customer, make_product, fill_cart,
        request_body, payment,
    ):
        desk = make_product(price=10.0)
        fill_cart((desk, 2))

        desk.price = 7.5
        session.add(desk)
        session.commit()

        result = order_service.checkout(session, customer.id, request_body, payment)
        assert result.order.total_amount == 15.0


class TestCheckoutRejected:
    def test_empty_cart(self, session, order_service, customer, request_body, payment):
        with pytest.raises(EmptyCart):
            order_service.checkout(session, customer.id, request_body, payment)
        assert all_orders(session) == []

    def test_insufficient_stock(
        self, session, order_service, customer, make_product, fill_cart,
        request_body, payment,
    ):
        desk = make_product(stock=5)
        fill_cart((desk, 3))
        desk.stock = 2
        session.add(desk)
        session.commit()

        with pytest.raises(InsufficientStock) as exc_info:
            order_service.checkout(session, customer.id, request_body, payment)

        assert exc_info.value.details["available"] == 2
        assert all_orders(session) == []
        session.refresh(desk)
        assert desk.stock == 2

    def test_inactive_product(
        self, session, order_service, customer, make_product, fill_cart,
        request_body, payment,
    ):
        desk = make_product()
        fill_cart((desk, 1))
        desk.is_active = False
        session.add(desk)
        session.commit()

        with pytest.raises(ProductUnavailable):
            order_service.checkout(session, customer.id, request_body, payment)
        assert all_orders(session) == []

    def test_missing_card_fields(
        self, session, order_service, customer, make_product, fill_cart,
        checkout_payload, payment,
    ):
        fill_cart((make_product(), 1))
        checkout_payload["payment_data"].pop("cvv")
        checkout_payload["payment_data"]["expiry_date"] = "13/30"
        body = CheckoutRequest.model_validate(checkout_payload)

        with pytest.raises(InvalidPaymentData) as exc_info:
            order_service.checkout(session, customer.id, body, payment)

        errors = exc_info.value.details["errors"]
        assert "CVV is required for card payments" in errors
        assert "Expiry date must be in format MM/YY" in errors
        assert all_orders(session) == []

    def test_non_card_method_needs_no_card(
        self, session, order_service, customer, make_product, fill_cart,
        checkout_payload, payment,
    ):
        fill_cart((make_product(), 1))
        checkout_payload["payment_method"] = "paypal"
        checkout_payload["payment_data"] = {"amount": 10.0}
        body = CheckoutRequest.model_validate(checkout_payload)

        result = order_service.checkout(session, customer.id, body, payment)
        assert result.order.payment_method == "paypal"


class TestPaymentDeclined:
    def test_order_kept_cart_and_stock_untouched(
        self, session, order_service, customer, make_product, fill_cart,
        request_body,
    ):
        desk = make_product(price=10.0, stock=5)
        fill_cart((desk, 2))
        declining = PaymentSimulator(success_rate=0.0, delay_seconds=0)

        with pytest.raises(PaymentFailed) as exc_info:
            order_service.checkout(session, customer.id, request_body, declining)

        body = exc_info.value.to_dict()
        assert body["message"] == "Payment failed"
        assert body["order"]["status"] == "pending"
        assert body["order"]["payment_status"] == "failed"

        (order,) = all_orders(session)
        assert order.status == "pending"
        assert order.payment_status == "failed"
        assert order.transaction_id is None
        assert str(order.id) == body["order"]["id"]

        session.refresh(desk)
        assert desk.stock == 5
        assert len(session.exec(select(CartItem)).all()) == 1

    def test_retry_after_decline(
        self, session, order_service, customer, make_product, fill_cart,
        request_body, payment,
    ):
        fill_cart((make_product(), 1))
        declining = PaymentSimulator(success_rate=0.0, delay_seconds=0)
        with pytest.raises(PaymentFailed):
            order_service.checkout(session, customer.id, request_body, declining)

        result = order_service.checkout(session, customer.id, request_body, payment)

        assert result.order.status == "confirmed"
        assert len(all_orders(session)) == 2


class TestStockRace:
    def test_line_lost_after_payment_is_reported(
        self, session, order_service, inventory, customer, make_product,
        fill_cart, request_body,
    ):
        desk = make_product(name="Desk", price=10.0, stock=5)
        lamp = make_product(name="Lamp", price=5.0, stock=1)
        fill_cart((desk, 2), (lamp, 1))

        class RacingPayment(PaymentSimulator):
            """Another buyer takes the last lamp while this payment runs."""

            def simulate(self, *args, **kwargs):
                inventory.commit(session, lamp.id, 1)
                session.commit()
                return super().simulate(*args, **kwargs)

        result = order_service.checkout(
            session,
            customer.id,
            request_body,
            RacingPayment(success_rate=1.0, delay_seconds=0),
        )

        assert result.unfulfilled_items == [lamp.id]
        assert result.order.status == "confirmed"
        assert result.order.payment_status == "paid"
        session.refresh(desk)
        session.refresh(lamp)
        assert desk.stock == 3
        assert lamp.stock == 0


class TestOrderReads:
    def test_other_users_order_is_hidden(
        self, session, order_service, customer, make_user, make_product,
        fill_cart, request_body, payment,
    ):
        fill_cart((make_product(), 1))
        result = order_service.checkout(session, customer.id, request_body, payment)
        stranger = make_user("customer")

        with pytest.raises(NotFound):
            order_service.get_user_order(session, stranger.id, result.order.id)

    def test_unknown_order(self, session, order_service, customer):
        with pytest.raises(NotFound):
            order_service.get_user_order(session, customer.id, uuid.uuid4())

    def test_list_user_orders_paginates(
        self, session, order_service, customer, make_product, fill_cart,
        request_body, payment,
    ):
        desk = make_product(stock=10)
        for _ in range(3):
            fill_cart((desk, 1))
            order_service.checkout(session, customer.id, request_body, payment)

        page = order_service.list_user_orders(session, customer.id, page=1, limit=2)

        assert len(page.orders) == 2
        assert page.pagination.total_orders == 3
        assert page.pagination.total_pages == 2
        assert page.pagination.has_next
        assert not page.pagination.has_prev

    def test_order_items_persisted(
        self, session, order_service, customer, make_product, fill_cart,
        request_body, payment,
    ):
        fill_cart((make_product(name="Desk"), 2))
        result = order_service.checkout(session, customer.id, request_body, payment)

        items = session.exec(
            select(OrderItem).where(OrderItem.order_id == result.order.id)
        ).all()
        assert [(it.name, it.quantity) for it in items] == [("Desk", 2)]


class TestUpdateStatus:
    def test_status_chain(
        self, session, order_service, customer, make_product, fill_cart,
        request_body, payment,
    ):
        fill_cart((make_product(), 1))
        order_id = order_service.checkout(
            session, customer.id, request_body, payment
        ).order.id

        shipped = order_service.update_status(
            session, order_id, OrderStatusUpdate(status="shipped")
        )
        assert shipped.previous_status == "confirmed"
        assert shipped.order.status == "shipped"

        delivered = order_service.update_status(
            session, order_id, OrderStatusUpdate(status="delivered")
        )
        assert delivered.order.status == "delivered"

    def test_unknown_order(self, session, order_service):
        with pytest.raises(NotFound):
            order_service.update_status(
                session, uuid.uuid4(), OrderStatusUpdate(status="shipped")
            )


class TestShippingAddress:
    @pytest.mark.parametrize("zip_code", ["97403", "97403-1234", " 97403 "])
    def test_accepted_zip_codes(self, checkout_payload, zip_code):
        fields = dict(checkout_payload["shipping_address"], zip_code=zip_code)
        assert ShippingAddress(**fields).zip_code == zip_code.strip()

    @pytest.mark.parametrize("zip_code", ["not-a-zip", "9740", "97403-12", "974031"])
    def test_rejected_zip_codes(self, checkout_payload, zip_code):
        fields = dict(checkout_payload["shipping_address"], zip_code=zip_code)
        with pytest.raises(ValidationError):
            ShippingAddress(**fields)


class TestPaymentData:
    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValidationError):
            PaymentData(amount=amount)

    def test_valid_card_has_no_problems(self, checkout_payload):
        data = PaymentData(**checkout_payload["payment_data"])
        assert validate_payment_data("credit_card", data) == []

    def test_bank_transfer_only_needs_amount(self):
        assert validate_payment_data("bank_transfer", PaymentData(amount=1.0)) == []
