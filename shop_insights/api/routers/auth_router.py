import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.api.deps import error_boundary, get_shopify_connector
from shop_insights.core.auth import CurrentUser, get_optional_user
from shop_insights.core.config import get_settings
from shop_insights.core.exceptions import ValidationError
from shop_insights.core.security import create_secure_state, verify_secure_state
from shop_insights.crud.store import create_or_update_store
from shop_insights.crud.user import get_user, upsert_user
from shop_insights.db.base import get_db
from shop_insights.schemas.store import StoreCreate
from shop_insights.schemas.user import UserRead, UserUpsert, UserUpsertResponse
from shop_insights.services.platform_connector import EcommercePlatformConnector
from shop_insights.tasks.shopify_sync import sync_store_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")

@router.post("/register", response_model=UserUpsertResponse)
async def register_user(
    payload: UserUpsert,
    db: AsyncSession = Depends(get_db),
):
    """
    Upsert the signed-in user on first sign-in.
    """
    if not payload.user_id or not payload.email:
        raise ValidationError("userId and email are required")

    async with error_boundary("auth/register"):
        result = await upsert_user(db, payload.user_id, payload.email, payload.name, payload.image)
        user = await get_user(db, result.id)
        logger.info(f"User {user.id} {result.outcome.value}")
        return UserUpsertResponse(user=UserRead.model_validate(user))

@router.get("/shopify")
async def start_shopify_install(
    shop: Optional[str] = None,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    connector: EcommercePlatformConnector = Depends(get_shopify_connector),
):
    """Redirects the merchant to Shopify's consent screen."""
    settings = get_settings()
    if not shop:
        return RedirectResponse(url=f"{settings.FRONTEND_URL}/connect?error=missing_shop")

    state = create_secure_state(user.id if user else None)
    try:
        auth_url = connector.generate_auth_url(shop, state)
    except ValueError as ve:
        raise ValidationError(str(ve))
    return RedirectResponse(url=auth_url)

@router.get("/shopify/callback")
async def handle_shopify_callback(
    request: Request,
    db: AsyncSession = Depends(get_db),
    connector: EcommercePlatformConnector = Depends(get_shopify_connector),
):
    """Handles the redirect callback from Shopify after OAuth authorization."""
    params = dict(request.query_params)
    shop = params.get('shop')
    if not shop:
        raise ValidationError("Missing shop parameter")

    async with error_boundary("auth/shopify/callback"):
        try:
            # 1. The state carries the user who started the install
            state_data = verify_secure_state(params.get('state') or "")

            # 2. Exchange the code for an access token
            token_data = await connector.exchange_code_for_token(params)
        except ValueError as ve:
            raise ValidationError(str(ve))

        access_token = token_data.get('access_token')
        if not access_token:
            raise ValidationError("Could not retrieve access token from Shopify")

        # 3. Create or refresh the store; keyed by shop domain
        db_store = await create_or_update_store(db=db, store=StoreCreate(
            domain=shop,
            access_token=access_token,
            scope=token_data.get('scope'),
            user_id=state_data.get('user_id'),
        ))
        logger.info(f"Connected store {db_store.shop_domain} ({db_store.id})")

        # 4. Trigger the initial sync
        sync_store_task.delay(str(db_store.id))

    # 5. Redirect to the frontend
    settings = get_settings()
    return RedirectResponse(url=f"{settings.FRONTEND_URL}/dashboard?storeId={db_store.id}&shop={shop}")
