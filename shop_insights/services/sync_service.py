import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.core.config import get_settings
from shop_insights.crud.customer import count_customers, get_customer_id_map, insert_customers
from shop_insights.crud.order import count_orders, insert_orders
from shop_insights.db.models.store import Store
from shop_insights.services.platform_connector import EcommercePlatformConnector
from shop_insights.services.retry import with_retry

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    store_id: uuid.UUID
    customers_fetched: int = 0
    orders_fetched: int = 0
    customers_inserted: int = 0
    orders_inserted: int = 0


def store_lock_key(store_id: uuid.UUID) -> int:
    """Signed 64-bit advisory lock key derived from the store id."""
    return int.from_bytes(store_id.bytes[:8], "big", signed=True)


class SyncService:
    """
    Mirrors a store's remote customers and orders into the local database.

    Every run is idempotent: rows that already exist are skipped, so repeated
    runs against an unchanged remote never create duplicates.
    """

    def __init__(self, db: AsyncSession, connector: EcommercePlatformConnector):
        self.db = db
        self.connector = connector
        settings = get_settings()
        self.chunk_size = settings.SYNC_CHUNK_SIZE
        self.retries = settings.DB_RETRY_ATTEMPTS
        self.base_delay = settings.DB_RETRY_BASE_DELAY

    async def _retry(self, operation, label: str):
        return await with_retry(operation, label, retries=self.retries, base_delay=self.base_delay)

    async def _acquire_store_lock(self, store_id: uuid.UUID) -> None:
        # Serializes concurrent runs for one store; released on commit/rollback.
        if self.db.get_bind().dialect.name != "postgresql":
            return
        await self.db.execute(select(func.pg_advisory_xact_lock(store_lock_key(store_id))))

    def _customer_rows(self, store_id: uuid.UUID, customers: List[Dict]) -> List[Dict]:
        rows = []
        for customer_data_raw in customers:
            row = self.connector.map_customer_to_db_model(customer_data_raw)
            row['store_id'] = store_id
            rows.append(row)
        return rows

    def _order_rows(self, store_id: uuid.UUID, orders: List[Dict], customer_ids: Dict[str, uuid.UUID]) -> List[Dict]:
        rows = []
        for order_data_raw in orders:
            row = self.connector.map_order_to_db_model(order_data_raw)
            row['store_id'] = store_id
            platform_customer_id = row.pop('platform_customer_id', None)
            row['customer_id'] = customer_ids.get(platform_customer_id) if platform_customer_id else None
            if platform_customer_id and row['customer_id'] is None:
                logger.warning(f"Customer {platform_customer_id} not found for store {store_id} while linking order {row['platform_order_id']}.")
            rows.append(row)
        return rows

    async def sync_store(self, store: Store) -> SyncResult:
        store_id = store.id
        shop_domain = store.shop_domain
        access_token = store.access_token
        logger.info(f"Starting sync for store {shop_domain} ({store_id})")
        result = SyncResult(store_id=store_id)

        try:
            # 1. Fetch both collections concurrently
            customers, orders = await asyncio.gather(
                self.connector.fetch_customers(shop_domain, access_token),
                self.connector.fetch_orders(shop_domain, access_token),
            )
            result.customers_fetched = len(customers)
            result.orders_fetched = len(orders)
            logger.info(f"Fetched {len(customers)} customers, {len(orders)} orders from {shop_domain}")

            await self._retry(lambda: self._acquire_store_lock(store_id), "store.lock")

            # 2. Customers first; orders link to them
            customers_before = await self._retry(lambda: count_customers(self.db, store_id), "customer.count")
            if customers:
                customer_rows = self._customer_rows(store_id, customers)
                await self._retry(lambda: insert_customers(self.db, customer_rows, self.chunk_size), "customer.insert")
            customers_after = await self._retry(lambda: count_customers(self.db, store_id), "customer.count")
            result.customers_inserted = customers_after - customers_before

            # 3. Local ids for both new and previously synced customers
            customer_ids = await self._retry(lambda: get_customer_id_map(self.db, store_id), "customer.id_map")

            # 4. Orders, linked through the map
            orders_before = await self._retry(lambda: count_orders(self.db, store_id), "order.count")
            if orders:
                order_rows = self._order_rows(store_id, orders, customer_ids)
                await self._retry(lambda: insert_orders(self.db, order_rows, self.chunk_size), "order.insert")
            orders_after = await self._retry(lambda: count_orders(self.db, store_id), "order.count")
            result.orders_inserted = orders_after - orders_before

            store.last_sync_at = datetime.now(timezone.utc)
            await self.db.commit()
        except Exception as exc:
            logger.error(f"Sync failed for store {shop_domain}: {exc}", exc_info=True)
            await self.db.rollback()
            raise

        logger.info(
            f"Sync completed for {shop_domain}: inserted {result.customers_inserted}/{result.customers_fetched} customers, "
            f"{result.orders_inserted}/{result.orders_fetched} orders"
        )
        return result
