from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.crud.base import UpsertOutcome, UpsertResult
from shop_insights.db.models.user import User


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    return await db.get(User, user_id)


async def upsert_user(db: AsyncSession, user_id: str, email: str, name: Optional[str] = None, image: Optional[str] = None) -> UpsertResult:
    """Create the user on first sign-in, refresh the profile fields afterwards."""
    user = await get_user(db, user_id)
    if user:
        user.email = email
        user.name = name
        user.image = image
        outcome = UpsertOutcome.UPDATED
    else:
        db.add(User(id=user_id, email=email, name=name, image=image))
        outcome = UpsertOutcome.INSERTED

    await db.commit()
    return UpsertResult(outcome, user_id)
