import json
from typing import Dict, List, Optional

import httpx
import pytest
from cryptography.fernet import Fernet
from sqlalchemy.pool import StaticPool

from shop_insights.api.deps import get_shopify_connector
from shop_insights.core.config import get_settings
from shop_insights.db.base import Database
from shop_insights.db.models import Store
from shop_insights.server import create_app
from shop_insights.services.platform_connector import ShopifyConnector

TEST_ENCRYPTION_KEY = Fernet.generate_key()
TEST_WEBHOOK_SECRET = "shhh"
TEST_SHOP = "demo-store.myshopify.com"


@pytest.fixture(autouse=True)
def setup_environment(monkeypatch):
    """Encryption key and Shopify secret for all tests"""
    monkeypatch.setenv("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY.decode())
    settings = get_settings()
    monkeypatch.setattr(settings, "SHOPIFY_API_SECRET", TEST_WEBHOOK_SECRET)
    monkeypatch.setattr(settings, "SHOPIFY_API_KEY", "test-api-key")
    monkeypatch.setattr(settings, "DB_RETRY_BASE_DELAY", 0)
    monkeypatch.setattr(settings, "REQUIRE_AUTH", False)


@pytest.fixture
async def database():
    db = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as db:
        yield db


class FakeShopify:
    """In-memory Shopify Admin API serving customers.json and orders.json."""

    def __init__(self):
        self.customers: List[Dict] = []
        self.orders: List[Dict] = []
        self.requests: List[httpx.Request] = []
        self.fail_with: Optional[int] = None

    def add_customer(self, id, email=None, first_name=None, last_name=None) -> Dict:
        customer = {"id": id, "email": email, "first_name": first_name, "last_name": last_name}
        self.customers.append(customer)
        return customer

    def add_order(self, id, total_price="10.00", customer_id=None, processed_at="2024-03-01T10:00:00Z",
                  name=None, currency="USD", financial_status="paid", fulfillment_status=None, customer=None) -> Dict:
        order = {
            "id": id,
            "name": name or f"#{id}",
            "total_price": total_price,
            "currency": currency,
            "financial_status": financial_status,
            "fulfillment_status": fulfillment_status,
            "processed_at": processed_at,
            "customer": customer or ({"id": customer_id} if customer_id is not None else None),
        }
        self.orders.append(order)
        return order

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(self.fail_with, text="[API] Invalid API key or access token")
        if request.url.path.endswith("/customers.json"):
            return httpx.Response(200, json={"customers": self.customers})
        if request.url.path.endswith("/orders.json"):
            return httpx.Response(200, json={"orders": self.orders})
        return httpx.Response(404, text="Not Found")


@pytest.fixture
def shopify():
    return FakeShopify()


@pytest.fixture
def connector(shopify):
    return ShopifyConnector(
        api_key="test-api-key",
        api_secret=TEST_WEBHOOK_SECRET,
        transport=httpx.MockTransport(shopify.handler),
    )


@pytest.fixture
def make_store(session):
    async def _make_store(shop_domain: str = TEST_SHOP, access_token: str = "shpat_test_token", user_id: Optional[str] = None) -> Store:
        store = Store(shop_domain=shop_domain, access_token=access_token, user_id=user_id)
        session.add(store)
        await session.commit()
        await session.refresh(store)
        return store
    return _make_store


@pytest.fixture
def app(database, connector):
    application = create_app(database)
    application.dependency_overrides[get_shopify_connector] = lambda: connector
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def webhook_body():
    def _body(payload: Dict) -> bytes:
        return json.dumps(payload).encode()
    return _body
