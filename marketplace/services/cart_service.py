from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import uuid4

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.data.models.cart import CartModel
from marketplace.data.models.cart_item import CartItemModel
from marketplace.domain.errors import (
    CartNotReady,
    Conflict,
    DownstreamFailure,
    EmptyCart,
    ErrorKind,
    Forbidden,
    InvalidInput,
    NotFound,
    OutOfStock,
    PriceChanged,
)
from marketplace.domain.ports import CheckoutLock, OrderCreator, ProductCatalog
from marketplace.domain.values import (
    CartLine,
    CartSnapshot,
    CartSummary,
    DeliveryInfo,
    LineIssue,
    LineStatus,
    OrderLine,
    ProductSnapshot,
    ValidationReport,
)
from marketplace.repos.cart_repo import CartRepo
from marketplace.utils.settings import CHECKOUT_LOCK_TTL_SECONDS
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


class CartService:
    """
    Use case'y dla domeny cart, prosty podzial cqrs:
    commands (add, update, remove, clear, confirm_prices, convert) modyfikuja stan,
    query (get, summary, validate) tylko odczyt.

    Katalog produktow jest zrodlem prawdy dla ceny i stanu magazynu,
    koszyk trzyma tylko snapshot ceny z momentu dodania.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductCatalog,
        lock_service: CheckoutLock | None = None,
        order_creator: OrderCreator | None = None,
    ):
        self.repo = CartRepo(db)
        self.product_client = product_client
        self.lock_service = lock_service
        self.order_creator = order_creator

    #pomocnicze

    @staticmethod
    def _line(item: CartItemModel) -> CartLine:
        return CartLine(
            line_id=item.id,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price=_money(item.unit_price),
        )

    def _snapshot(self, cart: CartModel, items: List[CartItemModel]) -> CartSnapshot:
        lines = [self._line(i) for i in items]
        return CartSnapshot(
            cart_id=cart.id,
            user_id=cart.user_id,
            lines=lines,
            subtotal=sum((l.unit_price * l.quantity for l in lines), Decimal("0.00")),
            item_count=len(lines),
            total_items=sum(l.quantity for l in lines),
        )

    def _owned_item(self, user_id: int, line_id: int) -> CartItemModel:
        item = self.repo.get_item(line_id)

        if not item:
            raise NotFound("Cart item not found", line_id=line_id)

        if item.cart.user_id != user_id:
            raise Forbidden("Cart item does not belong to this user", line_id=line_id)

        return item

    def _inspect_line(self, item: CartItemModel) -> Tuple[Optional[LineIssue], Optional[ProductSnapshot]]:
        """Porownuje pozycje z aktualnym stanem katalogu, niczego nie zmienia."""
        snapshot_price = _money(item.unit_price)

        def issue(status: LineStatus, product: ProductSnapshot | None = None) -> LineIssue:
            return LineIssue(
                line_id=item.id,
                product_id=item.product_id,
                issue=status,
                quantity=item.quantity,
                snapshot_price=snapshot_price,
                current_price=_money(product.price) if product else None,
                available=product.stock_quantity if product else None,
            )

        try:
            product = self.product_client.fetch_product(item.product_id)
        except NotFound:
            return issue(LineStatus.REMOVED), None

        if not product.is_active:
            return issue(LineStatus.INACTIVE, product), product

        if not product.can_supply(item.quantity):
            return issue(LineStatus.OUT_OF_STOCK, product), product

        if _money(product.price) != snapshot_price:
            return issue(LineStatus.PRICE_CHANGED, product), product

        return None, product

    @staticmethod
    def _ensure_available(product: ProductSnapshot, quantity: int) -> None:
        if not product.is_active:
            raise OutOfStock("Product is not available", product_id=product.product_id)

        if not product.can_supply(quantity):
            raise OutOfStock(
                "Product is out of stock or insufficient quantity",
                product_id=product.product_id,
                requested=quantity,
                available=product.stock_quantity if product.in_stock else 0,
            )

    #query - odczyt

    def get_or_create_cart(self, user_id: int) -> CartModel:
        existing = self.repo.get_cart_by_user(user_id)

        if existing:
            return existing

        created = self.repo.create_cart(CartModel(user_id=user_id))
        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    def get_cart(self, user_id: int) -> CartSnapshot:
        cart = self.get_or_create_cart(user_id)
        return self._snapshot(cart, self.repo.get_cart_items(cart.id))

    def get_cart_summary(self, user_id: int) -> CartSummary:
        cart = self.get_or_create_cart(user_id)
        items = self.repo.get_cart_items(cart.id)

        subtotal = Decimal("0.00")
        issues: List[LineIssue] = []

        for item in items:
            line_issue, product = self._inspect_line(item)
            if line_issue:
                issues.append(line_issue)

            #do sumy tylko pozycje ktore da sie teraz kupic, po aktualnej cenie
            if product and product.is_active and product.can_supply(item.quantity):
                subtotal += _money(product.price) * item.quantity

        lines = [self._line(i) for i in items]
        return CartSummary(
            cart_id=cart.id,
            user_id=cart.user_id,
            lines=lines,
            subtotal=subtotal,
            item_count=len(lines),
            total_items=sum(l.quantity for l in lines),
            issues=issues,
        )

    def validate_cart_for_checkout(self, user_id: int) -> ValidationReport:
        cart = self.get_or_create_cart(user_id)
        items = self.repo.get_cart_items(cart.id)

        if not items:
            return ValidationReport(valid=False, line_issues=[], error=ErrorKind.EMPTY_CART)

        issues = []
        for item in items:
            line_issue, _ = self._inspect_line(item)
            if line_issue:
                issues.append(line_issue)

        #zmiana ceny jest tylko informacja, nie blokuje
        valid = not any(i.blocking for i in issues)

        logger.info(
            f"Validated cart {cart.id} for user {user_id}: valid={valid}, issues={len(issues)}"
        )
        return ValidationReport(valid=valid, line_issues=issues)

    #commands

    def add_to_cart(self, user_id: int, product_id: int, quantity: int) -> CartLine:
        if quantity <= 0:
            raise InvalidInput("Quantity must be greater than 0", quantity=quantity)

        product = self.product_client.fetch_product(product_id)
        self._ensure_available(product, quantity)

        cart = self.get_or_create_cart(user_id)
        existing = self.repo.get_cart_item(cart.id, product_id)

        if existing:
            new_quantity = existing.quantity + quantity
            self._ensure_available(product, new_quantity)

            logger.info(
                f"Product {product_id} already in cart {cart.id}, "
                f"increasing quantity {existing.quantity} -> {new_quantity}"
            )
            self.repo.increment_quantity(existing.id, quantity, _money(product.price))
            self.repo.commit()
            self.repo.refresh(existing)
            return self._line(existing)

        item = CartItemModel(
            cart_id=cart.id,
            product_id=product_id,
            quantity=quantity,
            unit_price=_money(product.price),
        )
        try:
            self.repo.add_cart_item(item)
        except IntegrityError:
            #ten sam produkt dodany rownolegle, druga proba trafi w galaz increment
            self.repo.rollback()
            logger.warning(f"Concurrent insert of product {product_id} into cart {cart.id}, retrying")
            return self.add_to_cart(user_id, product_id, quantity)

        self.repo.commit()
        self.repo.refresh(item)

        logger.info(f"Added product {product_id} x{quantity} to cart {cart.id}")
        return self._line(item)

    def update_cart_item(self, user_id: int, line_id: int, quantity: int) -> CartLine | None:
        if quantity < 0:
            raise InvalidInput("Quantity cannot be negative", quantity=quantity)

        item = self._owned_item(user_id, line_id)

        if quantity == 0:
            self.repo.delete_cart_item(item.cart_id, item.id)
            self.repo.commit()
            logger.info(f"Removed cart item {line_id} (quantity set to 0)")
            return None

        product = self.product_client.fetch_product(item.product_id)
        self._ensure_available(product, quantity)

        self.repo.set_quantity(item.id, quantity)
        self.repo.commit()
        self.repo.refresh(item)

        logger.info(f"Updated cart item {line_id} quantity to {quantity}")
        return self._line(item)

    def remove_from_cart(self, user_id: int, line_id: int) -> None:
        item = self._owned_item(user_id, line_id)

        rowcount = self.repo.delete_cart_item(item.cart_id, item.id)
        self.repo.commit()

        if rowcount == 0:
            #usuniete przez rownolegly request - stan docelowy osiagniety
            logger.info(f"Cart item {line_id} was already removed")
        else:
            logger.info(f"Removed cart item {line_id}")

    def clear_cart(self, user_id: int) -> int:
        cart = self.get_or_create_cart(user_id)
        removed = self.repo.delete_all_items(cart.id)
        self.repo.commit()
        self.repo.expire_all()

        logger.info(f"Cleared cart {cart.id}, items removed: {removed}")
        return removed

    def confirm_prices(self, user_id: int) -> CartSnapshot:
        """Klient akceptuje nowe ceny - snapshot ceny przepisany z katalogu."""
        cart = self.get_or_create_cart(user_id)

        for item in self.repo.get_cart_items(cart.id):
            try:
                product = self.product_client.fetch_product(item.product_id)
            except NotFound:
                continue

            current = _money(product.price)
            if current != _money(item.unit_price):
                logger.info(
                    f"Cart item {item.id}: price confirmed {item.unit_price} -> {current}"
                )
                self.repo.set_unit_price(item.id, current)

        self.repo.commit()
        self.repo.expire_all()
        return self.get_cart(user_id)

    def convert_cart_to_order(self, user_id: int, delivery_info: DeliveryInfo):
        """
        Checkout: walidacja -> OrderCreator -> czyszczenie koszyka (jeden commit) -> powiadomienie.

        Blad OrderCreatora zostawia koszyk bez zmian (rollback), wiec
        ponowienie z tym samym koszykiem jest bezpieczne.
        """
        if self.order_creator is None:
            raise RuntimeError("CartService has no OrderCreator configured")

        token = uuid4().hex
        self._acquire_checkout_lock(user_id, token)

        try:
            #walidacja pod lockiem, zeby zawezic okno wyscigu
            report = self.validate_cart_for_checkout(user_id)

            if report.error == ErrorKind.EMPTY_CART:
                raise EmptyCart("Cart is empty")

            if not report.valid:
                raise CartNotReady(report)

            if report.price_changed:
                raise PriceChanged(report)

            cart = self.get_or_create_cart(user_id)
            items = self.repo.get_cart_items(cart.id)
            lines = [
                OrderLine(
                    product_id=i.product_id,
                    quantity=i.quantity,
                    price=_money(i.unit_price),
                )
                for i in items
            ]

            logger.info(f"Converting cart {cart.id} with {len(lines)} lines to order")

            try:
                order = self.order_creator.create_order(user_id, lines, delivery_info)
                #zamowienie i czyszczenie koszyka w jednej transakcji
                self.repo.delete_all_items(cart.id)
                self.repo.commit()
            except DownstreamFailure:
                self.repo.rollback()
                raise
            except Exception as e:
                self.repo.rollback()
                logger.error(f"Order creation failed for cart {cart.id}: {e}")
                raise DownstreamFailure("Order creation failed", cart_id=cart.id) from e

            self.repo.expire_all()
            logger.info(f"Cart {cart.id} checked out as order {order.id}, cart cleared")

            #po commicie, blad powiadomienia nie cofa zamowienia
            self.order_creator.order_placed(order)
            return order

        finally:
            self._release_checkout_lock(user_id, token)

    def _acquire_checkout_lock(self, user_id: int, token: str) -> None:
        if self.lock_service is None:
            return

        try:
            locked = self.lock_service.acquire_checkout_lock(
                user_id=user_id,
                token=token,
                ttl=CHECKOUT_LOCK_TTL_SECONDS,
            )
        except RedisError as e:
            raise DownstreamFailure("Checkout lock is unavailable") from e

        if not locked:
            raise Conflict("Checkout already in progress for this cart")

    def _release_checkout_lock(self, user_id: int, token: str) -> None:
        if self.lock_service is None:
            return

        try:
            self.lock_service.release_checkout_lock(user_id, token)
        except RedisError as e:
            #lock i tak wygasnie po TTL
            logger.warning(f"Failed to release checkout lock for user {user_id}: {e}")
