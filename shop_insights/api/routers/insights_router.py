from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.api.deps import error_boundary, parse_date, require_date_range
from shop_insights.core.auth import CurrentUser, get_optional_user
from shop_insights.core.exceptions import NotFoundError, ValidationError
from shop_insights.crud.store import get_store
from shop_insights.db.base import get_db
from shop_insights.schemas.insights import (
    AvgRevenuePoint,
    CurrentMonth,
    CustomerOrder,
    OrdersByDatePoint,
    TopCustomersAndOrders,
    TopOrder,
    Totals,
)
from shop_insights.services.analytics.insights_service import InsightsService
from shop_insights.services.store_resolver import ensure_store_access, resolve_store

router = APIRouter(prefix="/insights")


@router.get("/totals", response_model=Totals)
async def totals(
    store_id: Optional[str] = Query(None, alias="storeId"),
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    """Revenue, order count and customer count for one store."""
    async with error_boundary("insights/totals"):
        store = await resolve_store(db, store_id, user)
        return await InsightsService(db).totals(store.id)


@router.get("/orders-by-date", response_model=List[OrdersByDatePoint])
async def orders_by_date(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    store_id: Optional[str] = Query(None, alias="storeId"),
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    async with error_boundary("insights/orders-by-date"):
        start, end = require_date_range(start_date, end_date)
        store = await resolve_store(db, store_id, user)
        return await InsightsService(db).orders_by_date(store.id, start, end)


@router.get("/avg-revenue-by-date", response_model=List[AvgRevenuePoint])
async def avg_revenue_by_date(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    store_id: Optional[str] = Query(None, alias="storeId"),
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    async with error_boundary("insights/avg-revenue-by-date"):
        start, end = require_date_range(start_date, end_date)
        store = await resolve_store(db, store_id, user)
        return await InsightsService(db).avg_revenue_by_date(store.id, start, end)


@router.get("/top-customers", response_model=TopCustomersAndOrders)
async def top_customers(
    store_id: Optional[str] = Query(None, alias="storeId"),
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    """Top five customers by spend together with the top five orders by value."""
    async with error_boundary("insights/top-customers"):
        store = await resolve_store(db, store_id, user)
        service = InsightsService(db)
        return TopCustomersAndOrders(
            top_customers=await service.top_customers(store.id),
            top_orders=await service.top_orders(store.id),
        )


@router.get("/top-orders", response_model=List[TopOrder])
async def top_orders(
    store_id: Optional[str] = Query(None, alias="storeId"),
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    async with error_boundary("insights/top-orders"):
        store = await resolve_store(db, store_id, user)
        return await InsightsService(db).top_orders(store.id)


@router.get("/customer-orders", response_model=List[CustomerOrder])
async def customer_orders(
    customer_id: Optional[str] = Query(None, alias="customerId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    """Order history of one customer, newest first, optionally limited to a date range."""
    async with error_boundary("insights/customer-orders"):
        if not customer_id:
            raise ValidationError("customerId is required")
        try:
            customer_uuid = UUID(customer_id)
        except ValueError:
            raise ValidationError(f"Invalid customerId: {customer_id}")

        service = InsightsService(db)
        customer = await service.get_customer(customer_uuid)
        if not customer:
            raise NotFoundError("Customer not found")
        ensure_store_access(await get_store(db, customer.store_id), user)

        start, end = parse_date(start_date, "startDate"), parse_date(end_date, "endDate")
        return await service.customer_orders(customer_uuid, start, end)


@router.get("/current-month", response_model=CurrentMonth)
async def current_month(
    store_id: Optional[str] = Query(None, alias="storeId"),
    db: AsyncSession = Depends(get_db),
    user: Optional[CurrentUser] = Depends(get_optional_user),
):
    async with error_boundary("insights/current-month"):
        store = await resolve_store(db, store_id, user)
        return await InsightsService(db).current_month(store.id)
