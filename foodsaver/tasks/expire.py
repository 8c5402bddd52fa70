# foodsaver/tasks/expire.py
from foodsaver.celery_worker import celery_app
from foodsaver.data.database import SessionLocal
from foodsaver.services.inventory_service import InventoryService
from foodsaver.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="foodsaver.tasks.expire.expire_listings_task")
def expire_listings_task():
    logger.info("Expire listings task started")

    db = SessionLocal()
    try:
        expired = InventoryService(db).expire_listings()
        logger.info(f"Expire listings task finished, {expired} listings expired")
        return expired
    finally:
        db.close()
