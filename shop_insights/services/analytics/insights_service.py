from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shop_insights.db.models.customer import Customer
from shop_insights.db.models.order import Order
from shop_insights.schemas.insights import (
    AvgRevenuePoint,
    CurrentMonth,
    CustomerOrder,
    OrdersByDatePoint,
    TopCustomer,
    TopOrder,
    Totals,
)

TOP_N = 5


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored in UTC; some drivers hand them back naive."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_bounds(start_date: date, end_date: date) -> Tuple[datetime, datetime]:
    """[start 00:00 UTC, day after end 00:00 UTC)."""
    start = datetime.combine(start_date, time.min, tzinfo=timezone.utc)
    end = datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
    if now.month == 12:
        end = datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(now.year, now.month + 1, 1, tzinfo=timezone.utc)
    return start, end


def full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return " ".join(part for part in (first_name, last_name) if part).strip()


class InsightsService:
    """Read-only aggregate queries over one store's mirrored orders and customers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def totals(self, store_id: UUID) -> Totals:
        revenue = await self.db.execute(
            select(func.sum(Order.total_price)).where(Order.store_id == store_id)
        )
        orders = await self.db.execute(
            select(func.count(Order.id)).where(Order.store_id == store_id)
        )
        customers = await self.db.execute(
            select(func.count(Customer.id)).where(Customer.store_id == store_id)
        )
        return Totals(
            total_spent=Decimal(revenue.scalar() or 0),
            total_orders=orders.scalar_one(),
            total_customers=customers.scalar_one(),
        )

    async def _orders_in_range(self, store_id: UUID, start_date: date, end_date: date) -> List[Tuple[datetime, Decimal]]:
        start, end = day_bounds(start_date, end_date)
        result = await self.db.execute(
            select(Order.processed_at, Order.total_price).where(
                and_(
                    Order.store_id == store_id,
                    Order.processed_at >= start,
                    Order.processed_at < end,
                )
            )
        )
        return [(as_utc(processed_at), total) for processed_at, total in result.all()]

    async def _daily_buckets(self, store_id: UUID, start_date: date, end_date: date) -> Dict[date, List[Decimal]]:
        buckets: Dict[date, List[Decimal]] = defaultdict(list)
        for processed_at, total in await self._orders_in_range(store_id, start_date, end_date):
            buckets[processed_at.date()].append(Decimal(total or 0))
        return buckets

    async def orders_by_date(self, store_id: UUID, start_date: date, end_date: date) -> List[OrdersByDatePoint]:
        buckets = await self._daily_buckets(store_id, start_date, end_date)
        return [
            OrdersByDatePoint(date=day, orders=len(totals))
            for day, totals in sorted(buckets.items())
        ]

    async def avg_revenue_by_date(self, store_id: UUID, start_date: date, end_date: date) -> List[AvgRevenuePoint]:
        buckets = await self._daily_buckets(store_id, start_date, end_date)
        return [
            AvgRevenuePoint(date=day, avg_revenue=sum(totals) / len(totals), order_count=len(totals))
            for day, totals in sorted(buckets.items())
        ]

    async def top_customers(self, store_id: UUID, limit: int = TOP_N) -> List[TopCustomer]:
        total_spend = func.sum(Order.total_price).label("total_spend")
        result = await self.db.execute(
            select(Customer.id, Customer.first_name, Customer.last_name, Customer.email, total_spend)
            .join(Order, Order.customer_id == Customer.id)
            .where(Order.store_id == store_id)
            .group_by(Customer.id, Customer.first_name, Customer.last_name, Customer.email)
            .order_by(total_spend.desc())
            .limit(limit)
        )
        return [
            TopCustomer(
                customer_id=customer_id,
                name=full_name(first_name, last_name) or "Unknown Customer",
                email=email or "No email",
                total_spend=Decimal(spend or 0),
            )
            for customer_id, first_name, last_name, email, spend in result.all()
        ]

    async def top_orders(self, store_id: UUID, limit: int = TOP_N) -> List[TopOrder]:
        result = await self.db.execute(
            select(
                Order.id,
                Order.order_number,
                Order.total_price,
                Order.currency,
                Order.processed_at,
                Customer.first_name,
                Customer.last_name,
                Customer.email,
            )
            .outerjoin(Customer, Order.customer_id == Customer.id)
            .where(Order.store_id == store_id)
            .order_by(Order.total_price.desc())
            .limit(limit)
        )
        orders = []
        for order_id, order_number, total, currency, processed_at, first_name, last_name, email in result.all():
            processed_at = as_utc(processed_at)
            orders.append(TopOrder(
                id=order_id,
                order_number=order_number,
                total=Decimal(total or 0),
                currency=currency,
                date=processed_at.isoformat() if processed_at else None,
                customer_name=full_name(first_name, last_name) or "Guest",
                customer_email=email or None,
            ))
        return orders

    async def get_customer(self, customer_id: UUID) -> Optional[Customer]:
        return await self.db.get(Customer, customer_id)

    async def customer_orders(
        self,
        customer_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[CustomerOrder]:
        stmt = select(Order).where(Order.customer_id == customer_id)
        if start_date and end_date:
            start, end = day_bounds(start_date, end_date)
            stmt = stmt.where(Order.processed_at >= start, Order.processed_at < end)
        stmt = stmt.order_by(Order.processed_at.desc().nulls_last())

        result = await self.db.execute(stmt)
        orders = []
        for order in result.scalars().all():
            processed_at = as_utc(order.processed_at)
            orders.append(CustomerOrder(
                id=order.id,
                order_number=order.order_number,
                date=processed_at.isoformat() if processed_at else None,
                total=Decimal(order.total_price or 0),
                currency=order.currency,
            ))
        return orders

    async def current_month(self, store_id: UUID, now: Optional[datetime] = None) -> CurrentMonth:
        now = as_utc(now) if now else datetime.now(timezone.utc)
        start, end = month_bounds(now)
        in_month = and_(
            Order.store_id == store_id,
            Order.processed_at >= start,
            Order.processed_at < end,
        )
        revenue = await self.db.execute(select(func.sum(Order.total_price)).where(in_month))
        orders = await self.db.execute(select(func.count(Order.id)).where(in_month))
        return CurrentMonth(
            revenue=Decimal(revenue.scalar() or 0),
            orders=orders.scalar_one(),
            month=now.month,
            year=now.year,
        )
