import uuid
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.crud.base import UpsertOutcome, UpsertResult, dialect_insert, insert_skip_duplicates
from shop_insights.db.models.customer import Customer

UPDATABLE_FIELDS = ("email", "first_name", "last_name")


async def insert_customers(db: AsyncSession, rows: List[Dict], chunk_size: int = 1000) -> None:
    """Insert customer rows, skipping any (store, platform id) pair that already exists."""
    rows = [{"id": uuid.uuid4(), **row} for row in rows]
    await insert_skip_duplicates(
        db, Customer, rows,
        index_elements=[Customer.store_id, Customer.platform_customer_id],
        chunk_size=chunk_size,
    )


async def get_customer_id_map(db: AsyncSession, store_id: uuid.UUID) -> Dict[str, uuid.UUID]:
    result = await db.execute(
        select(Customer.platform_customer_id, Customer.id).where(Customer.store_id == store_id)
    )
    return {platform_id: customer_id for platform_id, customer_id in result.all()}


async def count_customers(db: AsyncSession, store_id: uuid.UUID) -> int:
    result = await db.execute(select(func.count(Customer.id)).where(Customer.store_id == store_id))
    return result.scalar_one()


async def upsert_customer(db: AsyncSession, customer_data: dict) -> UpsertResult:
    """Create or update a customer keyed by (store_id, platform_customer_id) in one statement."""
    new_id = uuid.uuid4()
    stmt = dialect_insert(db, Customer).values(id=new_id, **customer_data)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Customer.store_id, Customer.platform_customer_id],
        set_={field: getattr(stmt.excluded, field) for field in UPDATABLE_FIELDS},
    ).returning(Customer.id)

    customer_id = (await db.execute(stmt)).scalar_one()
    outcome = UpsertOutcome.INSERTED if customer_id == new_id else UpsertOutcome.UPDATED
    return UpsertResult(outcome, customer_id)
