import strawberry
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.core.auth import CurrentUser, get_optional_user
from shop_insights.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from shop_insights.services.store_resolver import resolve_store


class StoreOwnerPermission(strawberry.BasePermission):
    message = "User is not authorized to access this store"

    async def has_permission(
        self,
        source: Any,
        info: strawberry.types.Info,
        **kwargs
    ) -> bool:
        context = info.context
        db: AsyncSession = context["db"]

        try:
            user: Optional[CurrentUser] = await get_optional_user(context["request"])
        except AuthenticationError:
            return False
        context["user"] = user

        try:
            await resolve_store(db, kwargs.get("store_id"), user)
        except AuthorizationError:
            return False
        except (NotFoundError, ValidationError):
            # Not a permission problem; the resolver reports it
            return True
        return True
