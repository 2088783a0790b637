import uuid
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from shop_insights.db.models.store import Store
from shop_insights.schemas.store import StoreCreate

async def create_or_update_store(db: AsyncSession, store: StoreCreate) -> Store:
    """Creates a new store or refreshes the credentials of the one with the same domain."""
    stmt = select(Store).where(Store.shop_domain == store.domain)
    result = await db.execute(stmt)
    db_store = result.scalars().first()

    if db_store:
        db_store.access_token = store.access_token # Setter handles encryption
        db_store.scope = store.scope
        if store.user_id:
            db_store.user_id = store.user_id
        # updated_at is handled by onupdate=func.now()
    else:
        db_store = Store(
            user_id=store.user_id,
            shop_domain=store.domain,
            access_token=store.access_token, # Setter handles encryption
            scope=store.scope,
        )
        db.add(db_store)

    await db.commit()
    await db.refresh(db_store)
    return db_store

async def get_store(db: AsyncSession, store_id: uuid.UUID) -> Optional[Store]:
    return await db.get(Store, store_id)

async def get_store_by_domain(db: AsyncSession, shop_domain: str) -> Optional[Store]:
    result = await db.execute(select(Store).where(Store.shop_domain == shop_domain))
    return result.scalars().first()

async def get_first_store(db: AsyncSession, user_id: Optional[str] = None) -> Optional[Store]:
    """First store by creation time, optionally restricted to one owner."""
    stmt = select(Store).order_by(Store.created_at, Store.id).limit(1)
    if user_id is not None:
        stmt = stmt.where(Store.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalars().first()

async def list_stores(db: AsyncSession, user_id: Optional[str] = None, limit: int = 10) -> List[Store]:
    stmt = select(Store).order_by(Store.created_at, Store.id).limit(limit)
    if user_id is not None:
        stmt = stmt.where(Store.user_id == user_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())
