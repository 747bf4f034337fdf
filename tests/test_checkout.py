"""
Tests for cart validation and cart -> order conversion
"""
from decimal import Decimal

import pytest

from marketplace.data.models.order import OrderModel
from marketplace.domain.errors import (
    CartNotReady,
    Conflict,
    DownstreamFailure,
    EmptyCart,
    ErrorKind,
    PriceChanged,
)
from marketplace.domain.values import DeliveryInfo, LineStatus
from marketplace.services.cart_service import CartService
from marketplace.services.order_service import OrderService


@pytest.fixture
def delivery():
    return DeliveryInfo(
        latitude=5.6037,
        longitude=-0.1870,
        address="12 Oxford Street",
        city="Accra",
        payment_method_id="pm_card_visa",
    )


@pytest.fixture
def svc(db, catalog, lock):
    return CartService(
        db=db,
        product_client=catalog,
        lock_service=lock,
        order_creator=OrderService(db),
    )


def _lines(svc, user_id=1):
    return [(l.product_id, l.quantity, l.unit_price) for l in svc.get_cart(user_id).lines]


class TestValidateCartForCheckout:
    def test_empty_cart_is_invalid(self, svc):
        report = svc.validate_cart_for_checkout(1)

        assert report.valid is False
        assert report.error == ErrorKind.EMPTY_CART
        assert report.line_issues == []

    def test_clean_cart_is_valid(self, svc, catalog):
        catalog.put(10)
        svc.add_to_cart(1, 10, 1)

        report = svc.validate_cart_for_checkout(1)

        assert report.valid is True
        assert report.line_issues == []

    def test_inactive_line_invalidates_regardless_of_other_lines(self, svc, catalog):
        catalog.put(10)
        catalog.put(11)
        catalog.put(12)
        for product_id in (10, 11, 12):
            svc.add_to_cart(1, product_id, 1)

        catalog.put(11, is_active=False)

        report = svc.validate_cart_for_checkout(1)

        assert report.valid is False
        assert [(i.product_id, i.issue) for i in report.line_issues] == [(11, LineStatus.INACTIVE)]
        #linie nie sa usuwane automatycznie
        assert len(svc.get_cart(1).lines) == 3

    def test_stock_drop_and_removed_product(self, svc, catalog):
        catalog.put(10, stock=5)
        catalog.put(11)
        svc.add_to_cart(1, 10, 4)
        svc.add_to_cart(1, 11, 1)

        catalog.put(10, stock=2)
        catalog.remove(11)

        report = svc.validate_cart_for_checkout(1)

        assert report.valid is False
        issues = {i.product_id: i for i in report.line_issues}
        assert issues[10].issue == LineStatus.OUT_OF_STOCK
        assert issues[10].available == 2
        assert issues[11].issue == LineStatus.REMOVED

    def test_price_drift_is_informational(self, svc, catalog):
        catalog.put(10, price="10.00")
        svc.add_to_cart(1, 10, 1)
        catalog.put(10, price="9.00")

        report = svc.validate_cart_for_checkout(1)

        assert report.valid is True
        assert report.price_changed
        assert report.line_issues[0].current_price == Decimal("9.00")
        assert report.line_issues[0].snapshot_price == Decimal("10.00")


class TestConvertCartToOrder:
    def test_creates_order_and_clears_cart(self, svc, catalog, db, lock, delivery):
        catalog.put(10, price="10.00")
        catalog.put(11, price="2.50")
        svc.add_to_cart(1, 10, 2)
        svc.add_to_cart(1, 11, 4)

        order = svc.convert_cart_to_order(1, delivery)

        assert order.user_id == 1
        assert order.subtotal == Decimal("30.00")
        assert order.total == Decimal("34.49")
        assert order.order_number.startswith("ORD-")
        assert [(i.product_id, i.quantity) for i in order.items] == [(10, 2), (11, 4)]
        assert svc.get_cart(1).lines == []
        assert lock.held == {}

    def test_empty_cart(self, svc, delivery):
        with pytest.raises(EmptyCart):
            svc.convert_cart_to_order(1, delivery)

    def test_invalid_cart_not_converted(self, svc, catalog, db, delivery):
        catalog.put(10)
        svc.add_to_cart(1, 10, 1)
        catalog.put(10, is_active=False)

        with pytest.raises(CartNotReady) as exc_info:
            svc.convert_cart_to_order(1, delivery)

        assert exc_info.value.details["issues"][0]["issue"] == "inactive"
        assert db.query(OrderModel).count() == 0
        assert len(svc.get_cart(1).lines) == 1

    def test_price_drift_requires_confirmation(self, svc, catalog, delivery):
        catalog.put(10, price="10.00")
        svc.add_to_cart(1, 10, 1)
        catalog.put(10, price="12.00")

        with pytest.raises(PriceChanged):
            svc.convert_cart_to_order(1, delivery)

        confirmed = svc.confirm_prices(1)
        assert confirmed.lines[0].unit_price == Decimal("12.00")

        order = svc.convert_cart_to_order(1, delivery)
        assert order.subtotal == Decimal("12.00")

    def test_failed_order_creation_leaves_cart_intact(self, db, catalog, lock, failing_creator, delivery):
        catalog.put(10, price="10.00")
        catalog.put(11, price="5.00")
        failing = CartService(db=db, product_client=catalog, lock_service=lock, order_creator=failing_creator)
        failing.add_to_cart(1, 10, 1)
        failing.add_to_cart(1, 11, 3)
        before = _lines(failing)

        with pytest.raises(DownstreamFailure):
            failing.convert_cart_to_order(1, delivery)

        assert _lines(failing) == before
        assert db.query(OrderModel).count() == 0
        assert len(failing_creator.calls) == 1
        assert lock.held == {}

        #ponowienie z tym samym koszykiem
        retry = CartService(db=db, product_client=catalog, lock_service=lock, order_creator=OrderService(db))
        order = retry.convert_cart_to_order(1, delivery)

        assert order.subtotal == Decimal("25.00")
        assert retry.get_cart(1).lines == []

    def test_creator_receives_checkout_lines(self, db, catalog, lock, failing_creator, delivery):
        catalog.put(10, price="7.25")
        svc = CartService(db=db, product_client=catalog, lock_service=lock, order_creator=failing_creator)
        svc.add_to_cart(1, 10, 2)

        with pytest.raises(DownstreamFailure):
            svc.convert_cart_to_order(1, delivery)

        user_id, lines, info = failing_creator.calls[0]
        assert user_id == 1
        assert [(l.product_id, l.quantity, l.price) for l in lines] == [(10, 2, Decimal("7.25"))]
        assert info is delivery

    def test_concurrent_checkout_rejected(self, svc, catalog, lock, delivery):
        catalog.put(10)
        svc.add_to_cart(1, 10, 1)
        lock.acquire_checkout_lock(1, "other-request", 30)

        with pytest.raises(Conflict):
            svc.convert_cart_to_order(1, delivery)

        assert len(svc.get_cart(1).lines) == 1
        assert lock.held == {1: "other-request"}


class BrokenNotifier:
    def __init__(self):
        self.calls = 0

    def send_order_notification(self, user_id, order_id):
        self.calls += 1
        raise ConnectionError("broker unreachable")


class PersistThenFailOrderService(OrderService):
    def create_order(self, user_id, lines, delivery_info):
        super().create_order(user_id, lines, delivery_info)
        raise RuntimeError("payment declined after order insert")


class TestCheckoutAtomicity:
    def test_notification_failure_keeps_single_order(self, db, catalog, lock, delivery):
        catalog.put(10, price="10.00")
        notifier = BrokenNotifier()
        svc = CartService(
            db=db,
            product_client=catalog,
            lock_service=lock,
            order_creator=OrderService(db, notification_service=notifier),
        )
        svc.add_to_cart(1, 10, 1)

        order = svc.convert_cart_to_order(1, delivery)

        assert notifier.calls == 1
        assert order.subtotal == Decimal("10.00")
        assert svc.get_cart(1).lines == []
        assert db.query(OrderModel).count() == 1

        #ponowienie nie tworzy drugiego zamowienia
        with pytest.raises(EmptyCart):
            svc.convert_cart_to_order(1, delivery)

        assert db.query(OrderModel).count() == 1

    def test_failure_after_order_insert_rolls_back_both(self, db, catalog, lock, delivery):
        catalog.put(10, price="10.00")
        catalog.put(11, price="3.00")
        svc = CartService(
            db=db,
            product_client=catalog,
            lock_service=lock,
            order_creator=PersistThenFailOrderService(db),
        )
        svc.add_to_cart(1, 10, 1)
        svc.add_to_cart(1, 11, 2)
        before = _lines(svc)

        with pytest.raises(DownstreamFailure):
            svc.convert_cart_to_order(1, delivery)

        assert db.query(OrderModel).count() == 0
        assert _lines(svc) == before
        assert lock.held == {}
