import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
from urllib.error import HTTPError, URLError

import httpx
import shopify
from starlette.concurrency import run_in_threadpool

from .base import EcommercePlatformConnector
from shop_insights.core.config import get_settings
from shop_insights.core.exceptions import RemoteFetchError

logger = logging.getLogger(__name__)

CUSTOMERS_PAGE_SIZE = 100
ORDERS_PAGE_SIZE = 250

class ShopifyConnector(EcommercePlatformConnector):
    """Shopify platform connector implementation."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        api_version: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.SHOPIFY_API_KEY
        self.api_secret = api_secret if api_secret is not None else settings.SHOPIFY_API_SECRET
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self._transport = transport
        self.timeout = timeout

    def get_platform_name(self) -> str:
        return "shopify"

    # --- OAuth ---

    def _require_credentials(self) -> None:
        if not self.api_key or not self.api_secret:
            raise ValueError("Shopify API credentials not configured")

    def generate_auth_url(self, shop_domain: str, state: str) -> str:
        """Generate the URL for the Shopify OAuth flow."""
        self._require_credentials()
        settings = get_settings()
        shopify.Session.setup(api_key=self.api_key, secret=self.api_secret)
        session = shopify.Session(shop_domain, self.api_version)

        scopes = [scope.strip() for scope in settings.SHOPIFY_SCOPES.split(",") if scope.strip()]
        redirect_uri = f"{settings.APP_URL}/api/auth/shopify/callback"
        return session.create_permission_url(scope=scopes, redirect_uri=redirect_uri, state=state)

    async def exchange_code_for_token(self, params: Dict[str, Any]) -> Dict:
        """
        Exchange authorization code for access token using Shopify OAuth.

        ``Session.request_token`` validates the callback HMAC before it POSTs
        the client id, secret and code to the shop.
        """
        self._require_credentials()
        shopify.Session.setup(api_key=self.api_key, secret=self.api_secret)
        session = shopify.Session(params.get("shop"), self.api_version)

        try:
            access_token = await run_in_threadpool(session.request_token, params)
        except shopify.ValidationException as e:
            raise ValueError(f"Invalid OAuth callback: {e}")
        except HTTPError as e:
            raise RemoteFetchError(f"Failed to exchange code for token: {e}", status=e.code)
        except URLError as e:
            raise RemoteFetchError(f"Failed to exchange code for token: {e.reason}")

        scope = getattr(session, "access_scopes", None)
        return {
            'access_token': access_token,
            'scope': str(scope) if scope else None,
        }

    # --- Resource fetching ---

    def _resource_url(self, shop_domain: str, resource: str) -> str:
        return f"https://{shop_domain}/admin/api/{self.api_version}/{resource}.json"

    async def _fetch_collection(self, shop_domain: str, access_token: str, resource: str, params: Dict[str, Any]) -> List[Dict]:
        """Fetch the first page of ``resource``; pagination is not followed."""
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            response = await client.get(
                self._resource_url(shop_domain, resource),
                params=params,
                headers={"X-Shopify-Access-Token": access_token},
            )
        if response.is_error:
            raise RemoteFetchError(
                f"Failed to fetch {resource}: {response.text}",
                status=response.status_code,
                body=response.text,
            )
        payload = response.json() or {}
        return payload.get(resource) or []

    async def fetch_customers(self, shop_domain: str, access_token: str) -> List[Dict]:
        return await self._fetch_collection(shop_domain, access_token, "customers", {"limit": CUSTOMERS_PAGE_SIZE})

    async def fetch_orders(self, shop_domain: str, access_token: str) -> List[Dict]:
        return await self._fetch_collection(shop_domain, access_token, "orders", {"status": "any", "limit": ORDERS_PAGE_SIZE})

    # --- Mapping ---

    def _parse_datetime(self, value: Optional[str]) -> Optional[datetime]:
        """Parse an ISO 8601 timestamp from Shopify and normalize it to UTC."""
        if not value:
            return None
        try:
            dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except (ValueError, TypeError):
            logger.warning(f"Could not parse datetime value: {value}")
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    def _safe_decimal(self, value: Any) -> Decimal:
        """Build a Decimal from the string form of ``value``; never goes through float."""
        if value is None or value == "":
            return Decimal('0')
        try:
            return Decimal(str(value))
        except InvalidOperation:
            logger.warning(f"Could not convert value to Decimal: {value}")
            return Decimal('0')

    def map_customer_to_db_model(self, platform_customer_data: Dict) -> Dict:
        return {
            'platform_customer_id': str(platform_customer_data.get('id')),
            'email': platform_customer_data.get('email'),
            'first_name': platform_customer_data.get('first_name'),
            'last_name': platform_customer_data.get('last_name'),
        }

    def map_order_to_db_model(self, platform_order_data: Dict) -> Dict:
        customer = self.extract_customer(platform_order_data)
        return {
            'platform_order_id': str(platform_order_data.get('id')),
            'order_number': platform_order_data.get('name'),
            'total_price': self._safe_decimal(platform_order_data.get('total_price')),
            'currency': platform_order_data.get('currency') or 'USD',
            'financial_status': platform_order_data.get('financial_status'),
            'fulfillment_status': platform_order_data.get('fulfillment_status'),
            'processed_at': self._parse_datetime(platform_order_data.get('processed_at')),
            # Resolved to a local customer id by the caller
            'platform_customer_id': str(customer['id']) if customer and customer.get('id') is not None else None,
        }
