from typing import List, Optional
import strawberry
from strawberry.scalars import ID
from shop_insights.api.graphql.scalars import Date, Numeric


@strawberry.type
class StoreRef:
    id: ID
    shop: str


@strawberry.type
class Totals:
    total_spent: Numeric
    total_orders: int
    total_customers: int


@strawberry.type
class DailyOrders:
    date: Date
    orders: int


@strawberry.type
class DailyAverageRevenue:
    date: Date
    avg_revenue: Numeric
    order_count: int


@strawberry.type
class TopCustomer:
    customer_id: Optional[ID]
    name: str
    email: str
    total_spend: Numeric


@strawberry.type
class TopOrder:
    id: ID
    order_number: Optional[str]
    total: Numeric
    currency: Optional[str]
    date: Optional[str]
    customer_name: str
    customer_email: Optional[str]


@strawberry.type
class CurrentMonth:
    revenue: Numeric
    orders: int
    month: int
    year: int


@strawberry.type
class StoreInsights:
    """Everything the dashboard shows for one store and date range."""
    store: StoreRef
    totals: Totals
    orders_by_date: List[DailyOrders]
    avg_revenue_by_date: List[DailyAverageRevenue]
    top_customers: List[TopCustomer]
    top_orders: List[TopOrder]
