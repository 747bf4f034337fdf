# marketplace/repos/review_repo.py
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, func, update, delete, asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.data.models.review import ReviewModel, ReviewVoteModel
from marketplace.data.models.store import StoreModel
from marketplace.data.models.user import UserModel
from marketplace.data.models.user_rating import UserRatingModel
from marketplace.domain.values import RatingAggregate, ReviewScores, SUB_RATING_FIELDS

SORTABLE_COLUMNS = {
    "created_at": ReviewModel.created_at,
    "rating": ReviewModel.rating,
    "helpful_count": ReviewModel.helpful_count,
}


class ReviewRepo:
    def __init__(self, db: Session):
        self.db = db

    #recenzje

    def get_review(self, review_id: int) -> ReviewModel | None:
        return self.db.get(ReviewModel, review_id)

    def find_booking_review(self, giver_id: int, booking_id: int) -> ReviewModel | None:
        return self.db.execute(
            select(ReviewModel).where(
                ReviewModel.giver_id == giver_id,
                ReviewModel.booking_id == booking_id,
            )
        ).scalar_one_or_none()

    def add_review(self, review: ReviewModel) -> ReviewModel:
        self.db.add(review)
        self.db.flush()
        return review

    def delete_review(self, review: ReviewModel) -> None:
        self.db.execute(delete(ReviewVoteModel).where(ReviewVoteModel.review_id == review.id))
        self.db.delete(review)
        self.db.flush()

    def _filtered(self, filters: Dict[str, Any]):
        stmt = select(ReviewModel)
        for name, value in filters.items():
            if value is not None:
                stmt = stmt.where(getattr(ReviewModel, name) == value)
        return stmt

    def list_reviews(
        self,
        filters: Dict[str, Any],
        offset: int,
        limit: int,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[ReviewModel], int]:
        column = SORTABLE_COLUMNS[sort_by]
        direction = asc if sort_order == "asc" else desc

        stmt = self._filtered(filters)
        total = self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()
        rows = self.db.execute(
            stmt.order_by(direction(column), direction(ReviewModel.id)).offset(offset).limit(limit)
        ).scalars().all()
        return list(rows), total

    def rating_distribution(self, filters: Dict[str, Any]) -> Dict[int, int]:
        sub = self._filtered(filters).subquery()
        rows = self.db.execute(
            select(sub.c.rating, func.count()).group_by(sub.c.rating)
        ).all()
        return {int(rating): int(count) for rating, count in rows}

    #helpful

    def add_vote(self, review_id: int, user_id: int) -> bool:
        """Zwraca False gdy uzytkownik juz glosowal."""
        existing = self.db.execute(
            select(ReviewVoteModel.id).where(
                ReviewVoteModel.review_id == review_id,
                ReviewVoteModel.user_id == user_id,
            )
        ).scalar_one_or_none()
        if existing is not None:
            return False

        self.db.add(ReviewVoteModel(review_id=review_id, user_id=user_id))
        try:
            self.db.flush()
        except IntegrityError:
            #rownolegly glos tego samego uzytkownika
            self.db.rollback()
            return False

        self.db.execute(
            update(ReviewModel)
            .where(ReviewModel.id == review_id)
            .values(helpful_count=ReviewModel.helpful_count + 1)
            .execution_options(synchronize_session=False)
        )
        return True

    #ReviewStore - zrodlo prawdy dla agregatow

    def list_ratings_for_user(self, user_id: int, review_type: str) -> List[ReviewScores]:
        rows = self.db.execute(
            select(ReviewModel.rating, *(getattr(ReviewModel, name) for name in SUB_RATING_FIELDS)).where(
                ReviewModel.receiver_id == user_id,
                ReviewModel.type == review_type,
            )
        ).all()
        return [ReviewScores(**row._asdict()) for row in rows]

    def list_ratings_for_business(self, business_id: int) -> Sequence[int]:
        return self.db.execute(
            select(ReviewModel.rating).where(ReviewModel.business_id == business_id)
        ).scalars().all()

    def save_user_rating(self, aggregate: RatingAggregate) -> None:
        row = self.get_user_rating(aggregate.target_id, aggregate.review_type)

        if row is None:
            row = UserRatingModel(user_id=aggregate.target_id, review_type=aggregate.review_type)
            self.db.add(row)

        row.rating = aggregate.rating
        row.total_reviews = aggregate.total_reviews
        for name in SUB_RATING_FIELDS:
            setattr(row, name, aggregate.sub_ratings.get(name))
        self.db.flush()

    def save_business_rating(self, business_id: int, rating: Optional[float], total: int) -> None:
        self.db.execute(
            update(StoreModel)
            .where(StoreModel.id == business_id)
            .values(rating=rating, total_reviews=total)
            .execution_options(synchronize_session=False)
        )

    def get_user_rating(self, user_id: int, review_type: str) -> UserRatingModel | None:
        return self.db.execute(
            select(UserRatingModel).where(
                UserRatingModel.user_id == user_id,
                UserRatingModel.review_type == review_type,
            )
        ).scalar_one_or_none()

    def rated_user_targets(self) -> List[Tuple[int, str]]:
        """Wszystkie pary (user, type) ktore maja recenzje albo zapisany agregat."""
        reviewed = self.db.execute(
            select(ReviewModel.receiver_id, ReviewModel.type)
            .where(ReviewModel.receiver_id.is_not(None))
            .distinct()
        ).all()
        stored = self.db.execute(
            select(UserRatingModel.user_id, UserRatingModel.review_type)
        ).all()
        return sorted({(int(u), t) for u, t in list(reviewed) + list(stored)})

    def rated_business_targets(self) -> List[int]:
        reviewed = self.db.execute(
            select(ReviewModel.business_id).where(ReviewModel.business_id.is_not(None)).distinct()
        ).scalars().all()
        stored = self.db.execute(
            select(StoreModel.id).where(StoreModel.total_reviews > 0)
        ).scalars().all()
        return sorted({int(b) for b in list(reviewed) + list(stored)})

    #pomocnicze

    def get_store(self, store_id: int) -> StoreModel | None:
        return self.db.get(StoreModel, store_id)

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def flush(self) -> None:
        self.db.flush()

    def refresh(self, obj) -> None:
        self.db.refresh(obj)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
