"""Pytest fixtures for the storefront tests."""

import os

# Settings are read once at import time; configure before importing app.*
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("PAYMENT_DELAY_SECONDS", "0")

import copy
import uuid

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import get_settings
from app.database import get_session
from app.main import app
from app.models.product import Product
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.product_repo import ProductRepository
from app.routers.orders import get_payment_simulator
from app.services.cart_service import CartService
from app.services.inventory_service import InventoryLedger
from app.services.order_service import OrderService
from app.services.payment_service import PaymentSimulator


CHECKOUT_PAYLOAD = {
    "shipping_address": {
        "street": "742 Evergreen Terrace",
        "city": "Springfield",
        "state": "Oregon",
        "zip_code": "97403",
        "country": "USA",
    },
    "payment_method": "credit_card",
    "payment_data": {
        "amount": 25.0,
        "currency": "USD",
        "card_number": "4111 1111 1111 1111",
        "expiry_date": "12/30",
        "cvv": "123",
    },
}


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(session):
    def _make(role: str = "customer", email: str | None = None) -> User:
        user_id = uuid.uuid4()
        user = User(
            id=user_id,
            email=email or f"{role}-{user_id.hex[:8]}@example.com",
            name=role,
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def customer(make_user):
    return make_user("customer")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def make_product(session):
    def _make(
        name: str = "Walnut Desk",
        price: float = 10.0,
        stock: int = 5,
        is_active: bool = True,
        category: str = "furniture",
    ) -> Product:
        product = Product(
            name=name,
            description=f"{name} description",
            category=category,
            price=price,
            stock=stock,
            is_active=is_active,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def inventory():
    return InventoryLedger(ProductRepository())


@pytest.fixture
def cart_service(inventory):
    return CartService(CartRepository(), ProductRepository(), inventory)


@pytest.fixture
def order_service(inventory):
    return OrderService(OrderRepository(), CartRepository(), inventory)


@pytest.fixture
def payment():
    """Always-approving simulator; set success_rate = 0.0 to force declines."""
    return PaymentSimulator(success_rate=1.0, delay_seconds=0)


@pytest.fixture
def auth_headers():
    """Build a Bearer header for `user`, signed like the real issuer."""
    settings = get_settings()

    def _headers(user: User) -> dict[str, str]:
        token = jwt.encode(
            {"sub": str(user.id), "email": user.email},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALG,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def checkout_payload():
    return copy.deepcopy(CHECKOUT_PAYLOAD)


@pytest.fixture
def client(session, payment):
    """TestClient sharing the test session and the stub payment simulator."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_payment_simulator] = lambda: payment

    yield TestClient(app)

    app.dependency_overrides.clear()
