import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from shop_insights.core.exceptions import AppError, ValidationError, classify_exception
from shop_insights.services.platform_connector import EcommercePlatformConnector, get_connector

logger = logging.getLogger(__name__)


def get_shopify_connector() -> EcommercePlatformConnector:
    return get_connector('shopify')


def parse_date(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}")


def require_date_range(start_date: Optional[str], end_date: Optional[str]):
    if not start_date or not end_date:
        raise ValidationError("startDate and endDate are required")
    start, end = parse_date(start_date, "startDate"), parse_date(end_date, "endDate")
    if start > end:
        raise ValidationError("startDate must not be after endDate")
    return start, end


@asynccontextmanager
async def error_boundary(label: str):
    """Turn anything that escapes a handler into an AppError so it renders as ``{"error": ...}``."""
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        logger.error(f"[{label}] Failed: {exc}", exc_info=True)
        raise classify_exception(exc) from exc
