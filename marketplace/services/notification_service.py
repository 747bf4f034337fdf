# marketplace/services/notification_service.py
from marketplace.celery_worker import celery_app
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysylania powiadomien.
    Uzywa Celery do asynchronicznego przetwarzania.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int):
        """
        Wysyla powiadomienie o rozpoczeciu realizacji zamowienia.
        """
        send_order_notification_task.delay(user_id, order_id)

    @staticmethod
    def send_review_notification(receiver_id: int, review_id: int, rating: int):
        send_review_notification_task.delay(receiver_id, review_id, rating)


@celery_app.task(name="marketplace.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int):
    """
    Celery task - transport (email/SMS/push) jest poza tym serwisem, tylko logujemy.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: Order {order_id} is being processed")
    return {"user_id": user_id, "order_id": order_id, "status": "sent"}


@celery_app.task(name="marketplace.services.notification_service.send_review_notification_task")
def send_review_notification_task(receiver_id: int, review_id: int, rating: int):
    logger.info(f"[NOTIFICATION] User {receiver_id}: received a {rating}-star review ({review_id})")
    return {"user_id": receiver_id, "review_id": review_id, "status": "sent"}
