from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.api.deps import error_boundary
from shop_insights.core.auth import CurrentUser, get_optional_user
from shop_insights.crud.store import list_stores
from shop_insights.db.base import get_db
from shop_insights.schemas.store import StoreList, StoreSummary

router = APIRouter()


@router.get("/stores", response_model=StoreList)
async def get_stores(
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    """Connected stores: the caller's own when signed in, otherwise every store."""
    async with error_boundary("stores"):
        stores = await list_stores(db, user_id=user.id if user else None)
        return StoreList(stores=[StoreSummary.model_validate(store) for store in stores])
