# marketplace/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List, Optional
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    quantity: int = Field(..., gt=0, description="Ilosc produktu (musi byc > 0)")


class ItemUpdateIn(BaseModel):
    """Schema dla zmiany ilosci, 0 usuwa pozycje."""

    #ujemna ilosc odrzuca serwis (invalid_input), nie walidacja schematu
    quantity: int = Field(..., description="Nowa ilosc (0 = usun)")


class CartLineOut(BaseModel):
    line_id: int
    product_id: int
    quantity: int
    unit_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: int
    user_id: int
    lines: List[CartLineOut]
    subtotal: Decimal
    item_count: int
    total_items: int

    model_config = ConfigDict(from_attributes=True)


class LineIssueOut(BaseModel):
    line_id: int
    product_id: int
    issue: str
    quantity: int
    snapshot_price: Decimal
    current_price: Optional[Decimal] = None
    available: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class CartSummaryOut(CartOut):
    issues: List[LineIssueOut]
    needs_attention: bool


class ValidationReportOut(BaseModel):
    valid: bool
    line_issues: List[LineIssueOut]
    error: Optional[str] = None
    price_changed: bool

    model_config = ConfigDict(from_attributes=True)


class DeliveryAddressIn(BaseModel):
    latitude: float
    longitude: float
    address: str = Field(..., min_length=1)
    city: Optional[str] = None
    state: Optional[str] = None
    instructions: Optional[str] = None


class CheckoutIn(BaseModel):
    """Schema dla checkoutu koszyka."""

    delivery_address: DeliveryAddressIn
    payment_method_id: str = Field(..., min_length=1)
    special_instructions: Optional[str] = None


class OrderItemOut(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    order_number: str
    user_id: int
    status: str
    subtotal: Decimal
    delivery_fee: Decimal
    service_fee: Decimal
    total: Decimal
    delivery_address: str
    payment_method_id: str
    items: List[OrderItemOut]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewCreate(BaseModel):
    """Schema dla nowej recenzji - przynajmniej jeden z receiver/business/booking."""

    receiver_id: Optional[int] = Field(None, gt=0)
    business_id: Optional[int] = Field(None, gt=0)
    booking_id: Optional[int] = Field(None, gt=0)
    type: Optional[str] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    service_rating: Optional[int] = Field(None, ge=1, le=5)
    timeliness_rating: Optional[int] = Field(None, ge=1, le=5)
    cleanliness_rating: Optional[int] = Field(None, ge=1, le=5)
    communication_rating: Optional[int] = Field(None, ge=1, le=5)


class ReviewUpdate(BaseModel):
    """Edytowalne pola recenzji (tylko autor, w oknie edycji)."""

    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = None
    service_rating: Optional[int] = Field(None, ge=1, le=5)
    timeliness_rating: Optional[int] = Field(None, ge=1, le=5)
    cleanliness_rating: Optional[int] = Field(None, ge=1, le=5)
    communication_rating: Optional[int] = Field(None, ge=1, le=5)


class ReviewOut(BaseModel):
    id: int
    giver_id: int
    receiver_id: Optional[int] = None
    business_id: Optional[int] = None
    booking_id: Optional[int] = None
    type: str
    rating: int
    comment: Optional[str] = None
    service_rating: Optional[int] = None
    timeliness_rating: Optional[int] = None
    cleanliness_rating: Optional[int] = None
    communication_rating: Optional[int] = None
    helpful_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ReviewListOut(BaseModel):
    reviews: List[ReviewOut]
    pagination: PaginationOut


class RatingBucketOut(BaseModel):
    rating: int
    count: int


class ReviewStatsOut(BaseModel):
    total_reviews: int
    average_rating: float
    rating_distribution: List[RatingBucketOut]
    recent_reviews: List[ReviewOut]


class HelpfulOut(BaseModel):
    review_id: int
    helpful_count: int
    counted: bool


class RatingAggregateOut(BaseModel):
    target_id: int
    review_type: Optional[str] = None
    rating: Optional[float] = None
    total_reviews: int
    sub_ratings: Dict[str, Optional[float]] = {}
