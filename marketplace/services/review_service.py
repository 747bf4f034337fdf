# marketplace/services/review_service.py
from datetime import datetime, timedelta, timezone
from math import ceil
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.data.models.review import ReviewModel, REVIEW_TYPES
from marketplace.data.models.user import ADMIN_ROLES
from marketplace.domain.errors import Conflict, Forbidden, InvalidInput, NotFound
from marketplace.domain.schemas import ReviewCreate, ReviewUpdate
from marketplace.domain.values import RatingAggregate, SUB_RATING_FIELDS
from marketplace.repos.review_repo import ReviewRepo, SORTABLE_COLUMNS
from marketplace.services.notification_service import NotificationService
from marketplace.services.rating_service import RatingService
from marketplace.utils.settings import REVIEW_EDIT_WINDOW_HOURS
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


def _utc(value: datetime) -> datetime:
    #sqlite zwraca naiwne daty, traktujemy je jako UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _check_rating(name: str, value: Optional[int], required: bool = False) -> None:
    if value is None:
        if required:
            raise InvalidInput(f"{name} is required", field=name)
        return
    if not 1 <= value <= 5:
        raise InvalidInput(f"{name} must be between 1 and 5", field=name, value=value)


def _pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": ceil(total / limit) if limit else 0,
    }


class ReviewService:
    """
    Zapis recenzji + przeliczanie agregatow po kazdej zmianie.

    create / update (tylko gdy zmienil sie rating) / delete
    wywoluja RatingService dla odbiorcy i biznesu.
    """

    def __init__(
        self,
        db: Session,
        notification_service: NotificationService | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repo = ReviewRepo(db)
        self.ratings = RatingService(self.repo)
        self.notification_service = notification_service or NotificationService()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _recompute(self, receiver_id: int | None, review_type: str, business_id: int | None) -> None:
        if receiver_id:
            self.ratings.update_user_rating(receiver_id, review_type)
        if business_id:
            self.ratings.update_business_rating(business_id)

    def _get(self, review_id: int) -> ReviewModel:
        review = self.repo.get_review(review_id)
        if not review:
            raise NotFound("Review not found", review_id=review_id)
        return review

    #commands

    def submit_review(self, giver_id: int, payload: ReviewCreate) -> ReviewModel:
        _check_rating("rating", payload.rating, required=True)
        for name in SUB_RATING_FIELDS:
            _check_rating(name, getattr(payload, name))

        if not (payload.receiver_id or payload.business_id or payload.booking_id):
            raise InvalidInput("At least one of receiver_id, booking_id or business_id must be provided")

        if payload.receiver_id == giver_id:
            raise Forbidden("You cannot review yourself")

        review_type = payload.type or (
            "BUSINESS" if payload.business_id and not payload.receiver_id else "SERVICE_PROVIDER"
        )
        if review_type not in REVIEW_TYPES:
            raise InvalidInput("Unknown review type", type=review_type)

        if payload.business_id and not self.repo.get_store(payload.business_id):
            raise NotFound("Business not found", business_id=payload.business_id)

        if payload.booking_id and self.repo.find_booking_review(giver_id, payload.booking_id):
            raise Conflict("You have already reviewed this booking", booking_id=payload.booking_id)

        review = ReviewModel(
            giver_id=giver_id,
            receiver_id=payload.receiver_id,
            business_id=payload.business_id,
            booking_id=payload.booking_id,
            type=review_type,
            rating=payload.rating,
            comment=payload.comment,
            service_rating=payload.service_rating,
            timeliness_rating=payload.timeliness_rating,
            cleanliness_rating=payload.cleanliness_rating,
            communication_rating=payload.communication_rating,
        )

        try:
            self.repo.add_review(review)
        except IntegrityError:
            self.repo.rollback()
            raise Conflict("You have already reviewed this booking", booking_id=payload.booking_id)

        self._recompute(review.receiver_id, review.type, review.business_id)
        self.repo.commit()
        self.repo.refresh(review)

        logger.info(f"Review {review.id} submitted by user {giver_id} ({review.type}, {review.rating}*)")

        if review.receiver_id:
            self.notification_service.send_review_notification(review.receiver_id, review.id, review.rating)

        return review

    def update_review(self, user_id: int, review_id: int, payload: ReviewUpdate) -> ReviewModel:
        review = self._get(review_id)

        if review.giver_id != user_id:
            raise Forbidden("You can only update your own reviews", review_id=review_id)

        age = self.clock() - _utc(review.created_at)
        if age > timedelta(hours=REVIEW_EDIT_WINDOW_HOURS):
            raise Forbidden(
                f"Review can only be edited within {REVIEW_EDIT_WINDOW_HOURS} hours of submission",
                review_id=review_id,
            )

        changes = payload.model_dump(exclude_unset=True)
        if "rating" in changes:
            _check_rating("rating", changes["rating"], required=True)
        for name in SUB_RATING_FIELDS:
            if name in changes:
                _check_rating(name, changes[name])

        rating_changed = "rating" in changes and changes["rating"] != review.rating

        for name, value in changes.items():
            setattr(review, name, value)

        self.repo.flush()

        if rating_changed:
            self._recompute(review.receiver_id, review.type, review.business_id)

        self.repo.commit()
        self.repo.refresh(review)

        logger.info(f"Review {review_id} updated by user {user_id}, rating changed: {rating_changed}")
        return review

    def delete_review(self, user_id: int, review_id: int) -> None:
        review = self._get(review_id)

        user = self.repo.get_user(user_id)
        can_delete = review.giver_id == user_id or (user is not None and user.role in ADMIN_ROLES)

        if not can_delete:
            raise Forbidden("You can only delete your own reviews", review_id=review_id)

        receiver_id, review_type, business_id = review.receiver_id, review.type, review.business_id

        self.repo.delete_review(review)
        #przeliczenie na zbiorze juz bez usunietej recenzji
        self._recompute(receiver_id, review_type, business_id)
        self.repo.commit()

        logger.info(f"Review {review_id} deleted by user {user_id}")

    def mark_helpful(self, user_id: int, review_id: int) -> Dict[str, Any]:
        review = self._get(review_id)

        if review.giver_id == user_id:
            raise Forbidden("You cannot mark your own review as helpful", review_id=review_id)

        counted = self.repo.add_vote(review_id, user_id)
        self.repo.commit()

        review = self._get(review_id)
        self.repo.refresh(review)

        if not counted:
            logger.info(f"User {user_id} already marked review {review_id} as helpful")

        return {"review_id": review_id, "helpful_count": review.helpful_count, "counted": counted}

    #query

    def get_review(self, review_id: int) -> ReviewModel:
        return self._get(review_id)

    def list_reviews(
        self,
        receiver_id: int | None = None,
        business_id: int | None = None,
        booking_id: int | None = None,
        type: str | None = None,
        giver_id: int | None = None,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Dict[str, Any]:
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidInput("Invalid pagination parameters", page=page, limit=limit)

        if sort_by not in SORTABLE_COLUMNS:
            raise InvalidInput("Unsupported sort field", sort_by=sort_by)

        if sort_order not in ("asc", "desc"):
            raise InvalidInput("Sort order must be 'asc' or 'desc'", sort_order=sort_order)

        filters = {
            "receiver_id": receiver_id,
            "business_id": business_id,
            "booking_id": booking_id,
            "type": type,
            "giver_id": giver_id,
        }
        reviews, total = self.repo.list_reviews(
            filters,
            offset=(page - 1) * limit,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return {"reviews": reviews, "pagination": _pagination(page, limit, total)}

    def list_user_reviews(self, user_id: int, direction: str = "given", page: int = 1, limit: int = 10):
        if direction not in ("given", "received"):
            raise InvalidInput("Direction must be 'given' or 'received'", direction=direction)

        if direction == "given":
            return self.list_reviews(giver_id=user_id, page=page, limit=limit)
        return self.list_reviews(receiver_id=user_id, page=page, limit=limit)

    def get_review_stats(self, user_id: int | None = None, business_id: int | None = None) -> Dict[str, Any]:
        if not user_id and not business_id:
            raise InvalidInput("Either user_id or business_id is required")

        filters = {"receiver_id": user_id, "business_id": business_id}
        distribution = self.repo.rating_distribution(filters)
        total = sum(distribution.values())

        #statystyka do wyswietlenia, agregat (None gdy brak) jest w RatingService
        average = (
            sum(rating * count for rating, count in distribution.items()) / total if total else 0.0
        )
        recent, _ = self.repo.list_reviews(filters, offset=0, limit=5)

        return {
            "total_reviews": total,
            "average_rating": average,
            "rating_distribution": [
                {"rating": rating, "count": distribution.get(rating, 0)} for rating in range(1, 6)
            ],
            "recent_reviews": recent,
        }

    def get_rating(
        self,
        user_id: int | None = None,
        review_type: str | None = None,
        business_id: int | None = None,
    ) -> RatingAggregate:
        """Zapisany agregat po ostatnim przeliczeniu (uzytkownik per typ albo biznes)."""
        if business_id:
            store = self.repo.get_store(business_id)
            if not store:
                raise NotFound("Business not found", business_id=business_id)
            return RatingAggregate(
                target_id=business_id,
                rating=store.rating,
                total_reviews=store.total_reviews or 0,
            )

        if not user_id or not review_type:
            raise InvalidInput("Either business_id or user_id with type is required")

        if review_type not in REVIEW_TYPES:
            raise InvalidInput("Unknown review type", type=review_type)

        row = self.repo.get_user_rating(user_id, review_type)
        if row is None:
            return RatingAggregate(target_id=user_id, rating=None, total_reviews=0, review_type=review_type)

        return RatingAggregate(
            target_id=user_id,
            rating=row.rating,
            total_reviews=row.total_reviews,
            review_type=review_type,
            sub_ratings={name: getattr(row, name) for name in SUB_RATING_FIELDS},
        )
