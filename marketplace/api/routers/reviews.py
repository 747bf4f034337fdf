# marketplace/api/routers/reviews.py
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from marketplace.api.deps import get_review_service
from marketplace.domain.schemas import (
    HelpfulOut,
    RatingAggregateOut,
    ReviewCreate,
    ReviewListOut,
    ReviewOut,
    ReviewStatsOut,
    ReviewUpdate,
)
from marketplace.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("/", response_model=ReviewOut, status_code=201)
def submit_review(
    payload: ReviewCreate,
    user_id: int = Query(...),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.submit_review(user_id, payload)


@router.get("/", response_model=ReviewListOut)
def list_reviews(
    receiver_id: Optional[int] = None,
    business_id: Optional[int] = None,
    booking_id: Optional[int] = None,
    type: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    svc: ReviewService = Depends(get_review_service),
):
    return svc.list_reviews(
        receiver_id=receiver_id,
        business_id=business_id,
        booking_id=booking_id,
        type=type,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/stats", response_model=ReviewStatsOut)
def review_stats(
    user_id: Optional[int] = None,
    business_id: Optional[int] = None,
    svc: ReviewService = Depends(get_review_service),
):
    return svc.get_review_stats(user_id=user_id, business_id=business_id)


@router.get("/ratings", response_model=RatingAggregateOut)
def get_rating(
    user_id: Optional[int] = None,
    type: Optional[str] = None,
    business_id: Optional[int] = None,
    svc: ReviewService = Depends(get_review_service),
):
    """
    Agregat ocen po ostatnim przeliczeniu.
    ?user_id=&type= dla uzytkownika albo ?business_id= dla biznesu.
    """
    return asdict(svc.get_rating(user_id=user_id, review_type=type, business_id=business_id))


@router.get("/mine", response_model=ReviewListOut)
def my_reviews(
    user_id: int = Query(...),
    direction: str = "given",
    page: int = 1,
    limit: int = 10,
    svc: ReviewService = Depends(get_review_service),
):
    return svc.list_user_reviews(user_id, direction=direction, page=page, limit=limit)


@router.get("/{review_id}", response_model=ReviewOut)
def get_review(review_id: int, svc: ReviewService = Depends(get_review_service)):
    return svc.get_review(review_id)


@router.patch("/{review_id}", response_model=ReviewOut)
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    user_id: int = Query(...),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.update_review(user_id, review_id, payload)


@router.delete("/{review_id}", status_code=204)
def delete_review(
    review_id: int,
    user_id: int = Query(...),
    svc: ReviewService = Depends(get_review_service),
):
    svc.delete_review(user_id, review_id)
    return Response(status_code=204)


@router.post("/{review_id}/helpful", response_model=HelpfulOut)
def mark_helpful(
    review_id: int,
    user_id: int = Query(...),
    svc: ReviewService = Depends(get_review_service),
):
    return svc.mark_helpful(user_id, review_id)
