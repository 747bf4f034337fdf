# marketplace/domain/ports.py
from typing import List, Optional, Protocol, Sequence, Tuple

from marketplace.domain.values import (
    DeliveryInfo,
    OrderLine,
    ProductSnapshot,
    RatingAggregate,
    ReviewScores,
)


class ProductCatalog(Protocol):
    def fetch_product(self, product_id: int) -> ProductSnapshot:
        ...


class OrderCreator(Protocol):
    def create_order(self, user_id: int, lines: List[OrderLine], delivery_info: DeliveryInfo):
        ...

    def order_placed(self, order) -> None:
        ...


class CheckoutLock(Protocol):
    def acquire_checkout_lock(self, user_id: int, token: str, ttl: int) -> bool:
        ...

    def release_checkout_lock(self, user_id: int, token: str) -> bool:
        ...


class ReviewStore(Protocol):
    def list_ratings_for_user(self, user_id: int, review_type: str) -> Sequence[ReviewScores]:
        ...

    def list_ratings_for_business(self, business_id: int) -> Sequence[int]:
        ...

    def save_user_rating(self, aggregate: RatingAggregate) -> None:
        ...

    def save_business_rating(self, business_id: int, rating: Optional[float], total: int) -> None:
        ...

    def rated_user_targets(self) -> List[Tuple[int, str]]:
        ...

    def rated_business_targets(self) -> List[int]:
        ...
