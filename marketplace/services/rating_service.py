# marketplace/services/rating_service.py
from typing import Iterable, List, Optional, Sequence

from marketplace.domain.ports import ReviewStore
from marketplace.domain.values import RatingAggregate, SUB_RATING_FIELDS
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def mean_rating(ratings: Sequence[int]) -> Optional[float]:
    """Srednia arytmetyczna; brak recenzji to None, nie 0."""
    if not ratings:
        return None
    return sum(ratings) / len(ratings)


def mean_present(values: Iterable[Optional[int]]) -> Optional[float]:
    #pod-oceny sa opcjonalne, brakujace nie licza sie do mianownika
    return mean_rating([v for v in values if v is not None])


class RatingService:
    """
    Agregaty ocen uzytkownikow (per typ recenzji) i biznesow.

    Zawsze liczone od nowa z aktualnego zbioru recenzji, nigdy nie
    poprawiane inkrementalnie - po edycji czy usunieciu recenzji
    agregat nie trzyma starych wartosci.
    """

    def __init__(self, store: ReviewStore):
        self.store = store

    def update_user_rating(self, user_id: int, review_type: str) -> RatingAggregate:
        scores = self.store.list_ratings_for_user(user_id, review_type)

        aggregate = RatingAggregate(
            target_id=user_id,
            rating=mean_rating([s.rating for s in scores]),
            total_reviews=len(scores),
            review_type=review_type,
            sub_ratings={
                name: mean_present(getattr(s, name) for s in scores) for name in SUB_RATING_FIELDS
            },
        )
        self.store.save_user_rating(aggregate)

        logger.info(
            f"User {user_id} [{review_type}] rating recomputed: "
            f"{aggregate.rating} from {aggregate.total_reviews} reviews"
        )
        return aggregate

    def update_business_rating(self, business_id: int) -> RatingAggregate:
        #wszystkie typy recenzji biznesu liczone razem
        ratings = self.store.list_ratings_for_business(business_id)
        average = mean_rating(ratings)

        self.store.save_business_rating(business_id, average, len(ratings))

        logger.info(
            f"Business {business_id} rating recomputed: {average} from {len(ratings)} reviews"
        )
        return RatingAggregate(target_id=business_id, rating=average, total_reviews=len(ratings))

    def recompute_all(self) -> List[RatingAggregate]:
        results = [
            self.update_user_rating(user_id, review_type)
            for user_id, review_type in self.store.rated_user_targets()
        ]
        results.extend(
            self.update_business_rating(business_id)
            for business_id in self.store.rated_business_targets()
        )
        return results
