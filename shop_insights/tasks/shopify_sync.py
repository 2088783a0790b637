import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.future import select

from shop_insights.core.config import get_settings
from shop_insights.db.base import Database
from shop_insights.db.models import Store
from shop_insights.services.platform_connector import get_connector
from shop_insights.services.sync_service import SyncResult, SyncService
from shop_insights.tasks.async_helper import run_async
from shop_insights.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def run_store_sync(store_id: UUID, database: Optional[Database] = None) -> Optional[SyncResult]:
    """Sync one store in its own session. Returns None when the store no longer exists."""
    owns_database = database is None
    database = database or Database(get_settings().DATABASE_URL)
    try:
        async with database.session() as db:
            store = await db.get(Store, store_id)
            if not store:
                logger.error(f"Store with id {store_id} not found.")
                return None
            return await SyncService(db, get_connector('shopify')).sync_store(store)
    finally:
        if owns_database:
            await database.dispose()


async def list_store_ids(database: Optional[Database] = None) -> List[UUID]:
    owns_database = database is None
    database = database or Database(get_settings().DATABASE_URL)
    try:
        async with database.session() as db:
            result = await db.execute(select(Store.id))
            return list(result.scalars().all())
    finally:
        if owns_database:
            await database.dispose()


@celery_app.task(name='shop_insights.tasks.shopify_sync.sync_store_task')
def sync_store_task(store_id: str) -> str:
    """
    Fire-and-forget sync of one store.

    Failures end the run and are only logged; the task is not retried.
    """
    try:
        result = run_async(run_store_sync(UUID(store_id)))
    except Exception as exc:
        logger.error(f"Background sync failed for store {store_id}: {exc}", exc_info=True)
        return f"Sync failed for store {store_id}."
    if result is None:
        return f"Store {store_id} not found."
    return f"Sync completed for store {store_id}: {result.orders_inserted} new orders, {result.customers_inserted} new customers."


@celery_app.task(name='shop_insights.tasks.shopify_sync.schedule_periodic_syncs')
def schedule_periodic_syncs() -> int:
    """Enqueue a sync for every connected store."""
    store_ids = run_async(list_store_ids())
    for store_id in store_ids:
        sync_store_task.delay(str(store_id))
    logger.info(f"Scheduled periodic sync for {len(store_ids)} stores")
    return len(store_ids)
