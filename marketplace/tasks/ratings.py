# marketplace/tasks/ratings.py
from marketplace.celery_worker import celery_app
from marketplace.data.database import SessionLocal
from marketplace.repos.review_repo import ReviewRepo
from marketplace.services.rating_service import RatingService
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="marketplace.tasks.ratings.reconcile_ratings_task")
def reconcile_ratings_task():
    """
    Okresowe przeliczenie wszystkich agregatow.
    Naprawia wyniki wyscigu dwoch recenzji zapisujacych srednia dla tego samego celu.
    """
    logger.info("Reconcile ratings task started")

    db = SessionLocal()
    try:
        results = RatingService(ReviewRepo(db)).recompute_all()
        db.commit()
        logger.info(f"Reconciled {len(results)} rating aggregates")
        return len(results)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
