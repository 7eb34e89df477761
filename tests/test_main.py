import asyncio

import httpx
import pytest

from therapy_site.api import admin_auth, admin_catalog, admin_settings, booking, content
from therapy_site.core.auth import require_admin
from therapy_site.core.state import state
from therapy_site.main import app


@pytest.mark.asyncio
async def test_health_check(client):
    """Test public health endpoint"""
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "bağlı", "redis": "devre dışı"}


@pytest.mark.asyncio
async def test_request_id_header(client):
    response = await client.get("/health")
    assert len(response.headers["x-request-id"]) == 32

    response = await client.get("/health", headers={"X-Request-ID": "trace-1"})
    assert response.headers["x-request-id"] == "trace-1"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client):
    response = await client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_malformed_json_is_bad_request(client):
    response = await client.post(
        "/api/contact", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


class FakeRedis:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def eval(self, script, numkeys, key, limit, window):
        self.calls.append((key, limit, window))
        return self.result

    async def ping(self):
        return True


@pytest.mark.asyncio
async def test_rate_limit_exceeded(client, monkeypatch):
    fake = FakeRedis([0, 42])
    monkeypatch.setattr(state, "redis", fake)

    response = await client.post(
        "/api/admin/login", json={"email": "nobody@example.com", "password": "whatever123"}
    )

    assert response.status_code == 429
    assert response.headers["retry-after"] == "42"
    assert "42" in response.json()["error"]
    key, limit, window = fake.calls[0]
    assert key.startswith("rate:auth:") and key.endswith(":/api/admin/login")
    assert (limit, window) == (5, 300)


@pytest.mark.asyncio
async def test_rate_limit_allows_within_budget(client, monkeypatch):
    monkeypatch.setattr(state, "redis", FakeRedis([1, 0]))

    response = await client.post(
        "/api/contact", json={"name": "Ayşe", "email": "a@x.com", "message": "Merhaba"}
    )
    assert response.status_code == 200

    health = await client.get("/health")
    assert health.json()["redis"] == "bağlı"


@pytest.mark.asyncio
async def test_rate_limit_disabled_in_config(client, monkeypatch, test_config):
    fake = FakeRedis([0, 42])
    monkeypatch.setattr(state, "redis", fake)
    test_config.rate_limit.enabled = False

    response = await client.post(
        "/api/contact", json={"name": "Ayşe", "email": "a@x.com", "message": "Merhaba"}
    )

    assert response.status_code == 200
    assert fake.calls == []


@pytest.mark.asyncio
async def test_rate_limit_follows_configured_budget(client, monkeypatch, test_config):
    fake = FakeRedis([1, 0])
    monkeypatch.setattr(state, "redis", fake)
    test_config.rate_limit.max_requests = 3
    test_config.rate_limit.window_seconds = 120

    await client.post("/api/contact", json={"name": "Ayşe", "email": "a@x.com", "message": "Merhaba"})

    _, limit, window = fake.calls[0]
    assert (limit, window) == (3, 120)


@pytest.mark.asyncio
async def test_unhandled_error_is_generic_500(client, monkeypatch):
    def broken(db):
        raise RuntimeError("secret connection string leaked")

    monkeypatch.setattr(content, "get_service_options", broken)

    # Starlette re-raises after the 500 is sent; keep it inside the app
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/api/services")
        english = await ac.get("/api/services", headers={"Accept-Language": "en"})

    assert response.status_code == 500
    assert response.json() == {"error": "Beklenmeyen bir hata oluştu."}
    assert "secret" not in response.text
    assert english.json() == {"error": "An unexpected error occurred."}


@pytest.mark.parametrize(
    "handler",
    [
        admin_auth.login,
        admin_auth.logout,
        admin_auth.reset_password,
        admin_catalog.create_service,
        admin_settings.update_settings,
        booking.available_slots,
        content.list_service_options,
        require_admin,
    ],
)
def test_blocking_handlers_run_in_threadpool(handler):
    # FastAPI runs plain functions in its threadpool, off the event loop
    assert not asyncio.iscoroutinefunction(handler)
