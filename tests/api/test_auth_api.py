from urllib.parse import parse_qs, urlparse

import pytest
from sqlalchemy import select

from shop_insights.api.routers import auth_router
from shop_insights.core.config import get_settings
from shop_insights.core.security import create_access_token, create_secure_state
from shop_insights.db.models import Store


def bearer(user_id: str):
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
def queued(monkeypatch):
    calls = []

    class RecordingTask:
        @staticmethod
        def delay(*args):
            calls.append(args)

    monkeypatch.setattr(auth_router, "sync_store_task", RecordingTask)
    return calls


async def test_register_creates_then_updates_user(client):
    created = await client.post("/api/auth/register", json={"userId": "user-1", "email": "ada@example.com"})
    assert created.status_code == 200
    assert created.json() == {
        "ok": True,
        "user": {"id": "user-1", "email": "ada@example.com", "name": None, "image": None},
    }

    updated = await client.post(
        "/api/auth/register",
        json={"userId": "user-1", "email": "ada@example.com", "name": "Ada", "image": "https://img/ada.png"},
    )
    assert updated.status_code == 200
    assert updated.json()["user"]["name"] == "Ada"


async def test_register_requires_id_and_email(client):
    response = await client.post("/api/auth/register", json={"email": "ada@example.com"})
    assert response.status_code == 400
    assert response.json() == {"error": "userId and email are required"}


async def test_owner_can_read_store(client, make_store):
    store = await make_store(user_id="owner")
    response = await client.get("/api/insights/totals", params={"storeId": str(store.id)}, headers=bearer("owner"))
    assert response.status_code == 200


async def test_other_user_is_forbidden(client, make_store):
    store = await make_store(user_id="owner")
    response = await client.get("/api/insights/totals", params={"storeId": str(store.id)}, headers=bearer("intruder"))
    assert response.status_code == 403
    assert response.json() == {"error": "User is not authorized to access this store"}


async def test_signed_in_user_defaults_to_own_store(client, make_store):
    await make_store("someone-else.myshopify.com", user_id="other")
    mine = await make_store("mine.myshopify.com", user_id="owner")

    response = await client.get("/api/stores", headers=bearer("owner"))

    assert response.json() == {"stores": [{"id": str(mine.id), "shop": "mine.myshopify.com"}]}


async def test_malformed_authorization_header(client, make_store):
    await make_store()
    response = await client.get("/api/insights/totals", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


async def test_anonymous_request_refused_when_auth_required(client, make_store, monkeypatch):
    await make_store()
    monkeypatch.setattr(get_settings(), "REQUIRE_AUTH", True)
    response = await client.get("/api/insights/totals")
    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


async def test_install_without_shop_redirects_to_frontend(client):
    response = await client.get("/api/auth/shopify")
    assert response.status_code == 307
    assert response.headers["location"] == f"{get_settings().FRONTEND_URL}/connect?error=missing_shop"


async def test_install_redirects_to_shopify_consent(client):
    response = await client.get("/api/auth/shopify", params={"shop": "demo-store.myshopify.com"})

    assert response.status_code == 307
    location = urlparse(response.headers["location"])
    assert location.netloc == "demo-store.myshopify.com"
    assert location.path == "/admin/oauth/authorize"
    query = parse_qs(location.query)
    assert query["client_id"] == ["test-api-key"]
    assert query["redirect_uri"] == [f"{get_settings().APP_URL}/api/auth/shopify/callback"]
    assert "state" in query


async def test_callback_stores_token_and_queues_sync(client, session, connector, queued, monkeypatch):
    async def fake_exchange(params):
        return {"access_token": "shpat_new", "scope": "read_orders,read_customers"}

    monkeypatch.setattr(connector, "exchange_code_for_token", fake_exchange)
    params = {
        "shop": "fresh.myshopify.com",
        "code": "abc",
        "hmac": "ignored",
        "state": create_secure_state("owner"),
    }

    response = await client.get("/api/auth/shopify/callback", params=params)

    store = (await session.execute(select(Store).where(Store.shop_domain == "fresh.myshopify.com"))).scalar_one()
    assert store.access_token == "shpat_new"
    assert store.user_id == "owner"
    assert queued == [(str(store.id),)]
    assert response.status_code == 307
    assert response.headers["location"] == (
        f"{get_settings().FRONTEND_URL}/dashboard?storeId={store.id}&shop=fresh.myshopify.com"
    )


async def test_callback_rejects_bad_state(client, queued):
    response = await client.get(
        "/api/auth/shopify/callback",
        params={"shop": "fresh.myshopify.com", "code": "abc", "state": "forged"},
    )
    assert response.status_code == 400
    assert queued == []


async def test_malformed_register_body_uses_error_envelope(client):
    response = await client.post("/api/auth/register", json={"userId": {"nested": 1}, "email": "ada@example.com"})
    assert response.status_code == 400
    body = response.json()
    assert list(body) == ["error"]
    assert body["error"].startswith("Invalid request: body.userId")
