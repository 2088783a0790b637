from typing import List, Optional

from strawberry.types import Info

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
from shop_insights.api.graphql.scalars import DateRangeInput
from shop_insights.core.exceptions import ValidationError
from shop_insights.crud.store import list_stores
from shop_insights.services.analytics.insights_service import InsightsService
from shop_insights.services.store_resolver import resolve_store


def _check_range(date_range: DateRangeInput) -> None:
    if date_range.start_date > date_range.end_date:
        raise ValidationError("startDate must not be after endDate")


async def resolve_stores(info: Info) -> List[StoreRef]:
    user = info.context.get("user")
    stores = await list_stores(info.context["db"], user_id=user.id if user else None)
    return [StoreRef(id=str(store.id), shop=store.shop_domain) for store in stores]


async def resolve_totals(info: Info, store_id: Optional[str]) -> Totals:
    db = info.context["db"]
    store = await resolve_store(db, store_id, info.context.get("user"))
    totals = await InsightsService(db).totals(store.id)
    return Totals(
        total_spent=totals.total_spent,
        total_orders=totals.total_orders,
        total_customers=totals.total_customers,
    )


async def resolve_orders_by_date(info: Info, store_id: Optional[str], date_range: DateRangeInput) -> List[DailyOrders]:
    _check_range(date_range)
    db = info.context["db"]
    store = await resolve_store(db, store_id, info.context.get("user"))
    points = await InsightsService(db).orders_by_date(store.id, date_range.start_date, date_range.end_date)
    return [DailyOrders(date=point.date, orders=point.orders) for point in points]


async def resolve_avg_revenue_by_date(info: Info, store_id: Optional[str], date_range: DateRangeInput) -> List[DailyAverageRevenue]:
    _check_range(date_range)
    db = info.context["db"]
    store = await resolve_store(db, store_id, info.context.get("user"))
    points = await InsightsService(db).avg_revenue_by_date(store.id, date_range.start_date, date_range.end_date)
    return [
        DailyAverageRevenue(date=point.date, avg_revenue=point.avg_revenue, order_count=point.order_count)
        for point in points
    ]


def _to_top_customers(customers) -> List[TopCustomer]:
    return [
        TopCustomer(
            customer_id=str(customer.customer_id) if customer.customer_id else None,
            name=customer.name,
            email=customer.email,
            total_spend=customer.total_spend,
        )
        for customer in customers
    ]


def _to_top_orders(orders) -> List[TopOrder]:
    return [
        TopOrder(
            id=str(order.id),
            order_number=order.order_number,
            total=order.total,
            currency=order.currency,
            date=order.date,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
        )
        for order in orders
    ]


async def resolve_top_customers(info: Info, store_id: Optional[str], limit: int) -> List[TopCustomer]:
    db = info.context["db"]
    store = await resolve_store(db, store_id, info.context.get("user"))
    return _to_top_customers(await InsightsService(db).top_customers(store.id, limit))


async def resolve_top_orders(info: Info, store_id: Optional[str], limit: int) -> List[TopOrder]:
    db = info.context["db"]
    store = await resolve_store(db, store_id, info.context.get("user"))
    return _to_top_orders(await InsightsService(db).top_orders(store.id, limit))


async def resolve_current_month(info: Info, store_id: Optional[str]) -> CurrentMonth:
    db = info.context["db"]
    store = await resolve_store(db, store_id, info.context.get("user"))
    month = await InsightsService(db).current_month(store.id)
    return CurrentMonth(revenue=month.revenue, orders=month.orders, month=month.month, year=month.year)


async def resolve_store_insights(info: Info, store_id: Optional[str], date_range: DateRangeInput) -> StoreInsights:
    _check_range(date_range)
    db = info.context["db"]
    store = await resolve_store(db, store_id, info.context.get("user"))
    service = InsightsService(db)
    totals = await service.totals(store.id)
    by_date = await service.orders_by_date(store.id, date_range.start_date, date_range.end_date)
    avg_by_date = await service.avg_revenue_by_date(store.id, date_range.start_date, date_range.end_date)
    return StoreInsights(
        store=StoreRef(id=str(store.id), shop=store.shop_domain),
        totals=Totals(
            total_spent=totals.total_spent,
            total_orders=totals.total_orders,
            total_customers=totals.total_customers,
        ),
        orders_by_date=[DailyOrders(date=point.date, orders=point.orders) for point in by_date],
        avg_revenue_by_date=[
            DailyAverageRevenue(date=point.date, avg_revenue=point.avg_revenue, order_count=point.order_count)
            for point in avg_by_date
        ],
        top_customers=_to_top_customers(await service.top_customers(store.id)),
        top_orders=_to_top_orders(await service.top_orders(store.id)),
    )
