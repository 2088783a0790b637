import strawberry
from typing import List, Optional
from strawberry.types import Info
from shop_insights.api.graphql.scalars import DateRangeInput
from shop_insights.api.graphql.insights.types import (
    CurrentMonth,
    DailyAverageRevenue,
    DailyOrders,
    StoreInsights,
    StoreRef,
    TopCustomer,
    TopOrder,
    Totals,
)
from shop_insights.api.graphql.insights import resolvers
from shop_insights.api.graphql.permissions import StoreOwnerPermission

@strawberry.type
class InsightsQuery:
    @strawberry.field(permission_classes=[StoreOwnerPermission])
    async def stores(self, info: Info) -> List[StoreRef]:
        return await resolvers.resolve_stores(info)

    @strawberry.field(permission_classes=[StoreOwnerPermission])
    async def totals(self, info: Info, store_id: Optional[strawberry.ID] = None) -> Totals:
        return await resolvers.resolve_totals(info, store_id)

    @strawberry.field(permission_classes=[StoreOwnerPermission])
    async def orders_by_date(
        self,
        info: Info,
        date_range: DateRangeInput,
        store_id: Optional[strawberry.ID] = None,
    ) -> List[DailyOrders]:
        return await resolvers.resolve_orders_by_date(info, store_id, date_range)

    @strawberry.field(permission_classes=[StoreOwnerPermission])
    async def avg_revenue_by_date(
        self,
        info: Info,
        date_range: DateRangeInput,
        store_id: Optional[strawberry.ID] = None,
    ) -> List[DailyAverageRevenue]:
        return await resolvers.resolve_avg_revenue_by_date(info, store_id, date_range)

    @strawberry.field(permission_classes=[StoreOwnerPermission])
    async def top_customers(self, info: Info, store_id: Optional[strawberry.ID] = None, limit: int = 5) -> List[TopCustomer]:
        return await resolvers.resolve_top_customers(info, store_id, limit)

    @strawberry.field(permission_classes=[StoreOwnerPermission])
    async def top_orders(self, info: Info, store_id: Optional[strawberry.ID] = None, limit: int = 5) -> List[TopOrder]:
        return await resolvers.resolve_top_orders(info, store_id, limit)

    @strawberry.field(permission_classes=[StoreOwnerPermission])
    async def current_month(self, info: Info, store_id: Optional[strawberry.ID] = None) -> CurrentMonth:
        return await resolvers.resolve_current_month(info, store_id)

    @strawberry.field(permission_classes=[StoreOwnerPermission])
    async def store_insights(
        self,
        info: Info,
        date_range: DateRangeInput,
        store_id: Optional[strawberry.ID] = None,
    ) -> StoreInsights:
        return await resolvers.resolve_store_insights(info, store_id, date_range)
