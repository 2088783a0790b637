from typing import Any, Dict

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import GraphQLRouter

from shop_insights.api.graphql.schema import schema
from shop_insights.db.base import get_db


async def get_context(request: Request, db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    # "user" is filled in by StoreOwnerPermission once the bearer token is checked
    return {"request": request, "db": db, "user": None}


graphql_router = GraphQLRouter(schema, context_getter=get_context, graphql_ide="graphiql")
