import uuid
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.crud.base import UpsertOutcome, UpsertResult, dialect_insert, insert_skip_duplicates
from shop_insights.db.models.order import Order

UPDATABLE_FIELDS = (
    "order_number",
    "total_price",
    "currency",
    "financial_status",
    "fulfillment_status",
    "processed_at",
)


async def insert_orders(db: AsyncSession, rows: List[Dict], chunk_size: int = 1000) -> None:
    """Insert order rows, skipping any (store, platform id) pair that already exists."""
    rows = [{"id": uuid.uuid4(), **row} for row in rows]
    await insert_skip_duplicates(
        db, Order, rows,
        index_elements=[Order.store_id, Order.platform_order_id],
        chunk_size=chunk_size,
    )


async def count_orders(db: AsyncSession, store_id: uuid.UUID) -> int:
    result = await db.execute(select(func.count(Order.id)).where(Order.store_id == store_id))
    return result.scalar_one()


async def upsert_order(db: AsyncSession, order_data: dict) -> UpsertResult:
    """
    Create or update an order keyed by (store_id, platform_order_id) in one statement.

    An existing customer link is only replaced when a customer is supplied.
    """
    new_id = uuid.uuid4()
    stmt = dialect_insert(db, Order).values(id=new_id, **order_data)
    set_ = {field: getattr(stmt.excluded, field) for field in UPDATABLE_FIELDS}
    if order_data.get("customer_id") is not None:
        set_["customer_id"] = stmt.excluded.customer_id
    stmt = stmt.on_conflict_do_update(
        index_elements=[Order.store_id, Order.platform_order_id],
        set_=set_,
    ).returning(Order.id)

    order_id = (await db.execute(stmt)).scalar_one()
    outcome = UpsertOutcome.INSERTED if order_id == new_id else UpsertOutcome.UPDATED
    return UpsertResult(outcome, order_id)
