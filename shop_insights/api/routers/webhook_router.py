import json
import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.api.deps import error_boundary, get_shopify_connector
from shop_insights.core.config import get_settings
from shop_insights.core.exceptions import SignatureError, ValidationError
from shop_insights.core.security import verify_webhook_hmac
from shop_insights.db.base import get_db
from shop_insights.services.platform_connector import EcommercePlatformConnector
from shop_insights.services.webhook_service import WebhookService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks")

HMAC_HEADER = "x-shopify-hmac-sha256"
SHOP_HEADER = "x-shopify-shop-domain"


@router.post("/orders-create")
async def orders_create(
    request: Request,
    db: AsyncSession = Depends(get_db),
    connector: EcommercePlatformConnector = Depends(get_shopify_connector),
):
    """
    Ingest a Shopify ``orders/create`` webhook.

    Requests without an HMAC header are internal calls (background jobs,
    manual replays) and skip signature verification.
    """
    body = await request.body()
    signature = request.headers.get(HMAC_HEADER)

    if signature is not None:
        verification = verify_webhook_hmac(body, signature, get_settings().SHOPIFY_API_SECRET)
        if not verification.valid:
            logger.error(f"Webhook verification failed: {verification.message}")
            raise SignatureError(f"Webhook verification failed: {verification.message}")

    shop = request.headers.get(SHOP_HEADER)
    if not shop:
        raise ValidationError("No shop header present.")

    try:
        order_data = json.loads(body)
    except ValueError:
        raise ValidationError("Request body is not valid JSON.")

    async with error_boundary("webhooks/orders-create"):
        result = await WebhookService(db, connector).process_order(shop, order_data)

    return {
        "ok": True,
        "message": "Webhook processed successfully.",
        "order": result.order.outcome.value,
        "customer": result.customer.outcome.value if result.customer else None,
    }
