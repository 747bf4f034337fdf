# marketplace/services/order_service.py
import random
import string
import time
from decimal import Decimal
from typing import List

from kombu.exceptions import OperationalError
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from marketplace.data.models.order import OrderModel, OrderItemModel
from marketplace.domain.errors import Conflict, Forbidden, InvalidInput, NotFound
from marketplace.domain.values import DeliveryInfo, OrderLine
from marketplace.repos.order_repo import OrderRepo
from marketplace.services.notification_service import NotificationService
from marketplace.utils.settings import DELIVERY_FEE, SERVICE_FEE
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def generate_order_number() -> str:
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Dla CartService jest OrderCreatorem - dostaje gotowe linie z cena z checkoutu.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.notification_service = notification_service or NotificationService()

    def _unique_order_number(self, attempts: int = 5) -> str:
        for _ in range(attempts):
            number = generate_order_number()
            if not self.repo.order_number_taken(number):
                return number
        raise Conflict("Could not allocate a unique order number")

    def create_order(self, user_id: int, lines: List[OrderLine], delivery_info: DeliveryInfo) -> OrderModel:
        """
        Use Case: Tworzenie zamowienia z linii koszyka.

        1. Oblicza subtotal i oplaty
        2. Dodaje zamowienie i pozycje do sesji (flush, commit robi wywolujacy
           razem z czyszczeniem koszyka)
        """
        if not lines:
            raise InvalidInput("Order must contain at least one line")

        subtotal = sum((l.price * l.quantity for l in lines), Decimal("0.00"))
        total = subtotal + DELIVERY_FEE + SERVICE_FEE

        order = OrderModel(
            order_number=self._unique_order_number(),
            user_id=user_id,
            status="ORDER_PROCESSING",
            subtotal=subtotal,
            delivery_fee=DELIVERY_FEE,
            service_fee=SERVICE_FEE,
            total=total,
            delivery_address=delivery_info.address,
            delivery_city=delivery_info.city or "Unknown",
            delivery_state=delivery_info.state,
            delivery_latitude=delivery_info.latitude,
            delivery_longitude=delivery_info.longitude,
            delivery_instructions=delivery_info.instructions,
            payment_method_id=delivery_info.payment_method_id,
            special_instructions=delivery_info.special_instructions,
            items=[
                OrderItemModel(
                    product_id=l.product_id,
                    quantity=l.quantity,
                    unit_price=l.price,
                    total_price=l.price * l.quantity,
                )
                for l in lines
            ],
        )

        created_order = self.repo.add_order(order)

        logger.info(
            f"Order {created_order.order_number} created for user {user_id}, total {total}"
        )
        return created_order

    def order_placed(self, order: OrderModel) -> None:
        """Powiadomienie po commicie checkoutu, niedostepny broker nie cofa zamowienia."""
        try:
            self.notification_service.send_order_notification(order.user_id, order.id)
        except (OperationalError, RedisError, OSError) as e:
            logger.warning(f"Order {order.id} notification not queued: {e}")

    def get_order(self, order_id: int, user_id: int) -> OrderModel:
        """
        Use Case: Pobranie zamowienia (Query).
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFound("Order not found", order_id=order_id)

        if order.user_id != user_id:
            raise Forbidden("Order does not belong to this user", order_id=order_id)

        return order
