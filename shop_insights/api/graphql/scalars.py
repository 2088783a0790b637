import decimal
from datetime import date
import strawberry

# Define scalar types
Date = strawberry.scalar(
    date,
    name="Date",
    description="ISO-8601 formatted date",
    serialize=lambda v: v.isoformat(),
    parse_value=lambda v: date.fromisoformat(v),
)

Numeric = strawberry.scalar(
    decimal.Decimal,
    name="Numeric",
    description="Decimal number, serialized as a string to keep precision",
    serialize=lambda v: str(v),
    parse_value=lambda v: decimal.Decimal(v),
)

@strawberry.input
class DateRangeInput:
    start_date: Date
    end_date: Date
