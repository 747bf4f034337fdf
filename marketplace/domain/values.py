# marketplace/domain/values.py
from dataclasses import dataclass, field, asdict
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from marketplace.domain.errors import ErrorKind


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: int
    name: str
    price: Decimal
    stock_quantity: int
    in_stock: bool
    is_active: bool

    def can_supply(self, quantity: int) -> bool:
        return self.in_stock and self.stock_quantity >= quantity


class LineStatus(str, Enum):
    OK = "ok"
    PRICE_CHANGED = "price_changed"
    OUT_OF_STOCK = "out_of_stock"
    INACTIVE = "inactive"
    REMOVED = "removed"


BLOCKING_STATUSES = (LineStatus.OUT_OF_STOCK, LineStatus.INACTIVE, LineStatus.REMOVED)


@dataclass(frozen=True)
class LineIssue:
    line_id: int
    product_id: int
    issue: LineStatus
    quantity: int
    snapshot_price: Decimal
    current_price: Optional[Decimal] = None
    available: Optional[int] = None

    @property
    def blocking(self) -> bool:
        return self.issue in BLOCKING_STATUSES

    def to_dict(self) -> dict:
        data = asdict(self)
        data["issue"] = self.issue.value
        return data


@dataclass(frozen=True)
class ValidationReport:
    """Raport gotowosci koszyka - nie jest zapisywany w bazie."""

    valid: bool
    line_issues: List[LineIssue] = field(default_factory=list)
    error: Optional[ErrorKind] = None

    @property
    def blocking_issues(self) -> List[LineIssue]:
        return [i for i in self.line_issues if i.blocking]

    @property
    def price_changes(self) -> List[LineIssue]:
        return [i for i in self.line_issues if i.issue == LineStatus.PRICE_CHANGED]

    @property
    def price_changed(self) -> bool:
        return bool(self.price_changes)


@dataclass(frozen=True)
class CartLine:
    line_id: int
    product_id: int
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class CartSnapshot:
    cart_id: int
    user_id: int
    lines: List[CartLine]
    subtotal: Decimal
    item_count: int
    total_items: int


@dataclass(frozen=True)
class CartSummary:
    cart_id: int
    user_id: int
    lines: List[CartLine]
    subtotal: Decimal
    item_count: int
    total_items: int
    issues: List[LineIssue]

    @property
    def needs_attention(self) -> bool:
        return bool(self.issues)


@dataclass(frozen=True)
class OrderLine:
    product_id: int
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class DeliveryInfo:
    latitude: float
    longitude: float
    address: str
    payment_method_id: str
    city: Optional[str] = None
    state: Optional[str] = None
    instructions: Optional[str] = None
    special_instructions: Optional[str] = None


SUB_RATING_FIELDS = (
    "service_rating",
    "timeliness_rating",
    "cleanliness_rating",
    "communication_rating",
)


@dataclass(frozen=True)
class ReviewScores:
    """Oceny jednej recenzji, pod-oceny sa opcjonalne."""

    rating: int
    service_rating: Optional[int] = None
    timeliness_rating: Optional[int] = None
    cleanliness_rating: Optional[int] = None
    communication_rating: Optional[int] = None


@dataclass(frozen=True)
class RatingAggregate:
    target_id: int
    rating: Optional[float]
    total_reviews: int
    review_type: Optional[str] = None
    #srednie pod-ocen, None gdy zadna recenzja jej nie podala
    sub_ratings: Dict[str, Optional[float]] = field(default_factory=dict)
