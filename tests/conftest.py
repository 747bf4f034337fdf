"""
Pytest configuration and fixtures
"""
import os

# baza testowa zanim zaimportujemy marketplace (engine tworzony przy imporcie)
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import marketplace.data.models  # noqa: F401
from marketplace.celery_worker import celery_app
from marketplace.data.database import Base
from marketplace.data.models import StoreModel, UserModel
from marketplace.domain.errors import NotFound
from marketplace.domain.values import ProductSnapshot

# powiadomienia wykonywane lokalnie, bez brokera
celery_app.conf.task_always_eager = True


class FakeCatalog:
    """In-memory ProductCatalog."""

    def __init__(self):
        self.products = {}

    def put(self, product_id, price="10.00", stock=10, in_stock=True, is_active=True, name=None):
        self.products[product_id] = ProductSnapshot(
            product_id=product_id,
            name=name or f"Product {product_id}",
            price=Decimal(price),
            stock_quantity=stock,
            in_stock=in_stock,
            is_active=is_active,
        )
        return self.products[product_id]

    def remove(self, product_id):
        self.products.pop(product_id, None)

    def fetch_product(self, product_id):
        if product_id not in self.products:
            raise NotFound("Product not found", product_id=product_id)
        return self.products[product_id]


class FakeLock:
    """In-memory CheckoutLock."""

    def __init__(self):
        self.held = {}
        self.released = []

    def acquire_checkout_lock(self, user_id, token, ttl):
        if user_id in self.held:
            return False
        self.held[user_id] = token
        return True

    def release_checkout_lock(self, user_id, token):
        if self.held.get(user_id) == token:
            del self.held[user_id]
            self.released.append(user_id)
            return True
        return False


class FailingOrderCreator:
    def __init__(self, exc=None):
        self.exc = exc or RuntimeError("payment gateway timeout")
        self.calls = []

    def create_order(self, user_id, lines, delivery_info):
        self.calls.append((user_id, lines, delivery_info))
        raise self.exc

    def order_placed(self, order):
        raise AssertionError("order_placed called after a failed create_order")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Session with a few users and one store"""
    session = sessionmaker(bind=engine, autoflush=False)()
    session.add_all(
        [
            UserModel(id=1, name="Ama"),
            UserModel(id=2, name="Kofi"),
            UserModel(id=3, name="Esi"),
            UserModel(id=4, name="Admin", role="SUPER_ADMIN"),
        ]
    )
    session.add(StoreModel(id=1, name="Corner Shop", owner_id=2))
    session.commit()
    yield session
    session.close()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def lock():
    return FakeLock()


@pytest.fixture
def failing_creator():
    return FailingOrderCreator()
