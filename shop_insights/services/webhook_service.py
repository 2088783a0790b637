import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.core.exceptions import NotFoundError, ValidationError
from shop_insights.crud.base import UpsertResult
from shop_insights.crud.customer import upsert_customer
from shop_insights.crud.order import upsert_order
from shop_insights.crud.store import get_store_by_domain
from shop_insights.services.platform_connector import EcommercePlatformConnector

logger = logging.getLogger(__name__)


@dataclass
class WebhookResult:
    order: UpsertResult
    customer: Optional[UpsertResult] = None


class WebhookService:
    """Applies a single ``orders/create`` payload using the same mapping as a full sync."""

    def __init__(self, db: AsyncSession, connector: EcommercePlatformConnector):
        self.db = db
        self.connector = connector

    async def process_order(self, shop_domain: str, order_data: Dict) -> WebhookResult:
        if not isinstance(order_data, dict) or order_data.get("id") is None:
            raise ValidationError("Order payload must be a JSON object with an id.")

        store = await get_store_by_domain(self.db, shop_domain)
        if not store:
            logger.warning(f"Webhook received for an unknown store: {shop_domain}")
            raise NotFoundError("Store not found")

        try:
            customer_result = None
            customer_payload = self.connector.extract_customer(order_data)
            if customer_payload and customer_payload.get("id") is not None:
                customer_row = self.connector.map_customer_to_db_model(customer_payload)
                customer_row["store_id"] = store.id
                customer_result = await upsert_customer(self.db, customer_row)

            order_row = self.connector.map_order_to_db_model(order_data)
            order_row.pop("platform_customer_id", None)
            order_row["store_id"] = store.id
            order_row["customer_id"] = customer_result.id if customer_result else None
            order_result = await upsert_order(self.db, order_row)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Webhook order {order_row['platform_order_id']} for {shop_domain}: {order_result.outcome.value}"
        )
        return WebhookResult(order=order_result, customer=customer_result)
