import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.api.deps import error_boundary, get_shopify_connector
from shop_insights.core.auth import CurrentUser, get_optional_user
from shop_insights.core.config import get_settings
from shop_insights.db.base import get_db
from shop_insights.services.platform_connector import EcommercePlatformConnector
from shop_insights.services.retry import with_retry
from shop_insights.services.store_resolver import resolve_store
from shop_insights.services.sync_service import SyncService
from shop_insights.tasks.shopify_sync import sync_store_task

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sync")
async def trigger_sync(
    store_id: Optional[str] = Query(None, alias="storeId"),
    wait: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    connector: EcommercePlatformConnector = Depends(get_shopify_connector),
):
    """
    Mirror a store's Shopify customers and orders.

    With ``wait=true`` the sync runs inside the request and 200 is returned
    when it finishes. Any other ``wait`` value queues it on the worker and 202
    is returned straight away; failures of a queued sync are only logged.
    """
    logger.info("Sync request received")
    settings = get_settings()
    async with error_boundary("sync"):
        store = await with_retry(
            lambda: resolve_store(db, store_id, user),
            "store.resolve",
            retries=settings.DB_RETRY_ATTEMPTS,
            base_delay=settings.DB_RETRY_BASE_DELAY,
        )
        logger.info(f"Found store: {store.shop_domain}")

        if wait == "true":
            await SyncService(db, connector).sync_store(store)
            return JSONResponse(status_code=status.HTTP_200_OK, content={"ok": True, "message": "Sync completed"})

        sync_store_task.delay(str(store.id))
        return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content={"ok": True, "message": "Sync started"})
