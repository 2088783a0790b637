import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.core.auth import CurrentUser
from shop_insights.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from shop_insights.crud.store import get_first_store, get_store, list_stores
from shop_insights.db.models.store import Store
from shop_insights.schemas.store import StoreSummary

logger = logging.getLogger(__name__)


def parse_store_id(store_id: Optional[str]) -> Optional[uuid.UUID]:
    if not store_id:
        return None
    try:
        return uuid.UUID(str(store_id))
    except ValueError:
        raise ValidationError(f"Invalid storeId: {store_id}")


async def available_stores(db: AsyncSession, user: Optional[CurrentUser] = None) -> list:
    stores = await list_stores(db, user_id=user.id if user else None)
    return [StoreSummary.model_validate(store).model_dump(mode="json") for store in stores]


def ensure_store_access(store: Store, user: Optional[CurrentUser]) -> None:
    """A signed-in user may only read stores they own."""
    if user is not None and store.user_id is not None and store.user_id != user.id:
        raise AuthorizationError("User is not authorized to access this store")


async def resolve_store(
    db: AsyncSession,
    store_id: Optional[str] = None,
    user: Optional[CurrentUser] = None,
) -> Store:
    """
    Pick the store a request is about.

    An explicit id wins. Otherwise the signed-in user's first store, then the
    first store in storage. Having no store at all is a NotFoundError that
    lists the stores the caller could have asked for.
    """
    parsed_id = parse_store_id(store_id)
    if parsed_id:
        store = await get_store(db, parsed_id)
        if not store:
            raise NotFoundError(
                "Store not found for provided storeId.",
                extra={"availableStores": await available_stores(db, user)},
            )
        ensure_store_access(store, user)
        return store

    store = None
    if user is not None:
        store = await get_first_store(db, user_id=user.id)
    if store is None:
        store = await get_first_store(db)
        if store is not None:
            ensure_store_access(store, user)
    if store is None:
        logger.info("No store found in database")
        raise NotFoundError(
            "No store found. Please provide a storeId parameter or ensure stores exist in the database.",
            extra={"availableStores": await available_stores(db, user)},
        )
    return store
