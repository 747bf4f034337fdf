# marketplace/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from marketplace.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        """Zamowienie + pozycje w sesji wywolujacego, bez commita."""
        self.db.add(order)
        self.db.flush()
        return order

    def order_number_taken(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
        ).scalar_one_or_none()
