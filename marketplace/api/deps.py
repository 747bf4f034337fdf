# marketplace/api/deps.py
from fastapi import Depends
from sqlalchemy.orm import Session

from marketplace.data.database import get_db
from marketplace.services.cart_service import CartService
from marketplace.services.lock_service import LockService
from marketplace.services.order_service import OrderService
from marketplace.services.product_client import ProductClient
from marketplace.services.review_service import ReviewService


def get_product_client() -> ProductClient:
    return ProductClient()


def get_lock_service() -> LockService:
    return LockService()


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


def get_cart_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    lock_service: LockService = Depends(get_lock_service),
    order_service: OrderService = Depends(get_order_service),
) -> CartService:
    return CartService(
        db=db,
        product_client=product_client,
        lock_service=lock_service,
        order_creator=order_service,
    )


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    return ReviewService(db)
