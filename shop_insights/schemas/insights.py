from datetime import date
from decimal import Decimal
from typing import Annotated, List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Monetary values stay Decimal internally and become JSON numbers on the way out.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class InsightsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Totals(InsightsModel):
    total_spent: Money = Decimal("0")
    total_orders: int = 0
    total_customers: int = 0


class OrdersByDatePoint(InsightsModel):
    date: date
    orders: int


class AvgRevenuePoint(InsightsModel):
    date: date
    avg_revenue: Money
    order_count: int


class TopCustomer(InsightsModel):
    customer_id: Optional[uuid.UUID] = None
    name: str
    email: str
    total_spend: Money


class TopOrder(InsightsModel):
    id: uuid.UUID
    order_number: Optional[str] = None
    total: Money
    currency: Optional[str] = None
    date: Optional[str] = None
    customer_name: str
    customer_email: Optional[str] = None


class TopCustomersAndOrders(InsightsModel):
    top_customers: List[TopCustomer]
    top_orders: List[TopOrder]


class CustomerOrder(InsightsModel):
    id: uuid.UUID
    order_number: Optional[str] = None
    date: Optional[str] = None
    total: Money
    currency: Optional[str] = None


class CurrentMonth(InsightsModel):
    revenue: Money
    orders: int
    month: int
    year: int
