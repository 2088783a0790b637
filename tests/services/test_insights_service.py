import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from shop_insights.db.models import Customer, Order
from shop_insights.services.analytics.insights_service import InsightsService, day_bounds, month_bounds


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def seed(session):
    counter = iter(range(1, 10_000))

    async def add_customer(store, first_name=None, last_name=None, email=None):
        customer = Customer(
            id=uuid.uuid4(),
            store_id=store.id,
            platform_customer_id=str(next(counter)),
            first_name=first_name,
            last_name=last_name,
            email=email,
        )
        session.add(customer)
        await session.commit()
        return customer

    async def add_order(store, total, processed_at, customer=None, order_number=None):
        order = Order(
            id=uuid.uuid4(),
            store_id=store.id,
            customer_id=customer.id if customer else None,
            platform_order_id=str(next(counter)),
            order_number=order_number,
            total_price=Decimal(total),
            currency="USD",
            processed_at=processed_at,
        )
        session.add(order)
        await session.commit()
        return order

    return add_customer, add_order


def test_day_bounds_cover_whole_end_day():
    start, end = day_bounds(date(2024, 3, 1), date(2024, 3, 3))
    assert start == utc(2024, 3, 1)
    assert end == utc(2024, 3, 4)


def test_month_bounds_roll_over_year():
    assert month_bounds(utc(2024, 12, 15)) == (utc(2024, 12, 1), utc(2025, 1, 1))
    assert month_bounds(utc(2024, 2, 29)) == (utc(2024, 2, 1), utc(2024, 3, 1))


async def test_totals_for_empty_store(session, make_store):
    store = await make_store()
    totals = await InsightsService(session).totals(store.id)
    assert totals.total_spent == Decimal("0")
    assert totals.total_orders == 0
    assert totals.total_customers == 0


async def test_totals(session, make_store, seed):
    add_customer, add_order = seed
    store = await make_store()
    other = await make_store("other.myshopify.com")
    customer = await add_customer(store)
    await add_order(store, "10.50", utc(2024, 3, 1), customer)
    await add_order(store, "20.25", utc(2024, 3, 2))
    await add_order(other, "99.00", utc(2024, 3, 2))

    totals = await InsightsService(session).totals(store.id)

    assert totals.total_spent == Decimal("30.75")
    assert totals.total_orders == 2
    assert totals.total_customers == 1


async def test_orders_by_date_buckets_by_utc_day(session, make_store, seed):
    _, add_order = seed
    store = await make_store()
    await add_order(store, "10.00", utc(2024, 3, 3, 8))
    await add_order(store, "10.00", utc(2024, 3, 1, 0, 0))
    await add_order(store, "10.00", utc(2024, 3, 1, 23, 59))
    await add_order(store, "10.00", utc(2024, 3, 3, 23, 59, 59))
    await add_order(store, "10.00", utc(2024, 3, 4, 0, 0))
    await add_order(store, "10.00", utc(2024, 2, 29, 23, 59))
    await add_order(store, "10.00", None)

    points = await InsightsService(session).orders_by_date(store.id, date(2024, 3, 1), date(2024, 3, 3))

    assert [(p.date, p.orders) for p in points] == [
        (date(2024, 3, 1), 2),
        (date(2024, 3, 3), 2),
    ]


async def test_avg_revenue_by_date(session, make_store, seed):
    _, add_order = seed
    store = await make_store()
    await add_order(store, "10.00", utc(2024, 3, 1, 9))
    await add_order(store, "20.00", utc(2024, 3, 1, 17))
    await add_order(store, "7.50", utc(2024, 3, 2, 12))

    points = await InsightsService(session).avg_revenue_by_date(store.id, date(2024, 3, 1), date(2024, 3, 2))

    assert [(p.date, p.avg_revenue, p.order_count) for p in points] == [
        (date(2024, 3, 1), Decimal("15"), 2),
        (date(2024, 3, 2), Decimal("7.5"), 1),
    ]


async def test_empty_range(session, make_store):
    store = await make_store()
    service = InsightsService(session)
    assert await service.orders_by_date(store.id, date(2024, 1, 1), date(2024, 1, 31)) == []
    assert await service.avg_revenue_by_date(store.id, date(2024, 1, 1), date(2024, 1, 31)) == []


async def test_top_customers(session, make_store, seed):
    add_customer, add_order = seed
    store = await make_store()
    spends = {"A": "50.00", "B": "10.00", "C": "70.00", "D": "30.00", "E": "20.00", "F": "5.00"}
    for name, spend in spends.items():
        customer = await add_customer(store, first_name=name, last_name="Buyer", email=f"{name.lower()}@example.com")
        await add_order(store, spend, utc(2024, 3, 1), customer)
    low = await add_customer(store, first_name="G")
    await add_order(store, "1.00", utc(2024, 3, 1), low)
    # Guest orders never show up as customers
    await add_order(store, "500.00", utc(2024, 3, 1))

    top = await InsightsService(session).top_customers(store.id)

    assert [c.name for c in top] == ["C Buyer", "A Buyer", "D Buyer", "E Buyer", "B Buyer"]
    assert top[0].total_spend == Decimal("70.00")
    assert top[0].email == "c@example.com"


async def test_top_customers_name_and_email_fallbacks(session, make_store, seed):
    add_customer, add_order = seed
    store = await make_store()
    customer = await add_customer(store)
    await add_order(store, "5.00", utc(2024, 3, 1), customer)

    [top] = await InsightsService(session).top_customers(store.id)

    assert top.name == "Unknown Customer"
    assert top.email == "No email"
    assert top.customer_id == customer.id


async def test_top_orders(session, make_store, seed):
    add_customer, add_order = seed
    store = await make_store()
    ada = await add_customer(store, first_name="Ada", last_name="Lovelace", email="ada@example.com")
    for total in ("5.00", "15.00", "25.00", "35.00", "45.00"):
        await add_order(store, total, utc(2024, 3, 1), ada)
    biggest = await add_order(store, "100.00", utc(2024, 3, 2, 10, 30), order_number="#1042")

    top = await InsightsService(session).top_orders(store.id)

    assert len(top) == 5
    assert [o.total for o in top] == [Decimal(v) for v in ("100.00", "45.00", "35.00", "25.00", "15.00")]
    assert top[0].id == biggest.id
    assert top[0].order_number == "#1042"
    assert top[0].customer_name == "Guest"
    assert top[0].customer_email is None
    assert top[0].date == "2024-03-02T10:30:00+00:00"
    assert top[1].customer_name == "Ada Lovelace"
    assert top[1].customer_email == "ada@example.com"


async def test_customer_orders_newest_first(session, make_store, seed):
    add_customer, add_order = seed
    store = await make_store()
    ada = await add_customer(store, first_name="Ada")
    other = await add_customer(store, first_name="Bob")
    await add_order(store, "1.00", utc(2024, 3, 1), ada)
    await add_order(store, "2.00", utc(2024, 3, 10), ada)
    await add_order(store, "3.00", utc(2024, 3, 5), ada)
    await add_order(store, "4.00", utc(2024, 3, 6), other)

    service = InsightsService(session)
    orders = await service.customer_orders(ada.id)
    assert [o.total for o in orders] == [Decimal("2.00"), Decimal("3.00"), Decimal("1.00")]

    in_range = await service.customer_orders(ada.id, date(2024, 3, 1), date(2024, 3, 5))
    assert [o.total for o in in_range] == [Decimal("3.00"), Decimal("1.00")]


async def test_current_month(session, make_store, seed):
    _, add_order = seed
    store = await make_store()
    await add_order(store, "10.00", utc(2024, 3, 1))
    await add_order(store, "12.50", utc(2024, 3, 31, 23, 59))
    await add_order(store, "99.00", utc(2024, 2, 29, 23, 59))
    await add_order(store, "99.00", utc(2024, 4, 1))

    month = await InsightsService(session).current_month(store.id, now=utc(2024, 3, 15, 12))

    assert month.revenue == Decimal("22.50")
    assert month.orders == 2
    assert (month.month, month.year) == (3, 2024)
