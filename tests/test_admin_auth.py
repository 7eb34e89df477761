from datetime import datetime, timedelta

import pytest

from therapy_site.models.database import AdminPasswordReset, AdminSession, AdminUser

ADMIN = {"name": "Volkan", "email": "admin@example.com", "password": "supersecret1"}

COOKIE = "vt_admin_session"


def _reset_token_from_email(outbound) -> str:
    body = outbound.to("api.resend.com")[-1].read().decode()
    marker = "/admin/reset-password/"
    start = body.index(marker) + len(marker)
    return body[start:start + 64]


@pytest.mark.asyncio
async def test_setup_creates_admin_and_session(client, db):
    response = await client.post("/api/admin/setup", json=ADMIN)

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert COOKIE in response.cookies
    set_cookie = response.headers["set-cookie"].lower()
    assert "httponly" in set_cookie
    assert "samesite=lax" in set_cookie

    admin = db.query(AdminUser).one()
    assert admin.email == ADMIN["email"]
    assert admin.password_hash != ADMIN["password"]
    assert db.query(AdminSession).count() == 1


@pytest.mark.asyncio
async def test_setup_second_call_conflicts(client, db):
    assert (await client.post("/api/admin/setup", json=ADMIN)).status_code == 200

    other = {"name": "Başka", "email": "other@example.com", "password": "anotherpass"}
    response = await client.post("/api/admin/setup", json=other)

    assert response.status_code == 409
    assert db.query(AdminUser).count() == 1


@pytest.mark.asyncio
async def test_setup_after_completion_conflicts_for_any_body(client):
    assert (await client.post("/api/admin/setup", json=ADMIN)).status_code == 200

    response = await client.post("/api/admin/setup", json={"name": "x"})
    assert response.status_code == 409
    assert response.json() == {"error": "Kurulum tamamlanmış."}

    response = await client.post(
        "/api/admin/setup", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_setup_malformed_body(client):
    response = await client.post(
        "/api/admin/setup", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_setup_validation_error(client):
    response = await client.post("/api/admin/setup", json={"name": "V", "email": "bad", "password": "short"})

    assert response.status_code == 400
    fields = {item["field"] for item in response.json()["error"]}
    assert {"name", "email", "password"} <= fields


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    response = await client.post(
        "/api/admin/login", json={"email": "nobody@example.com", "password": "whatever123"}
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Geçersiz giriş bilgisi."}
    assert COOKIE not in response.cookies


@pytest.mark.asyncio
async def test_login_wrong_password(admin_client):
    admin_client.cookies.clear()
    response = await admin_client.post(
        "/api/admin/login", json={"email": ADMIN["email"], "password": "wrongpassword"}
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Geçersiz giriş bilgisi."}


@pytest.mark.asyncio
async def test_login_english_message(client):
    response = await client.post(
        "/api/admin/login",
        json={"email": "nobody@example.com", "password": "whatever123"},
        headers={"Accept-Language": "en-US,en;q=0.9"},
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid login credentials."}


@pytest.mark.asyncio
async def test_login_success(admin_client, db):
    admin_client.cookies.clear()
    response = await admin_client.post(
        "/api/admin/login",
        json={"email": ADMIN["email"], "password": ADMIN["password"], "rememberMe": True},
    )

    assert response.status_code == 200
    assert COOKIE in response.cookies
    assert "max-age=2592000" in response.headers["set-cookie"].lower()
    admin = db.query(AdminUser).one()
    assert admin.last_login_at is not None

    assert (await admin_client.get("/api/admin/media")).status_code == 200


@pytest.mark.asyncio
async def test_admin_routes_require_session(client):
    assert (await client.get("/api/admin/media")).status_code == 401
    assert (await client.get("/api/admin/backups")).status_code == 401
    assert (await client.get("/api/admin/settings")).status_code == 401


@pytest.mark.asyncio
async def test_forged_cookie_is_rejected(client):
    client.cookies.set(COOKIE, "not-a-signed-token")
    assert (await client.get("/api/admin/media")).status_code == 401


@pytest.mark.asyncio
async def test_expired_session_is_removed(admin_client, db):
    db.query(AdminSession).update({AdminSession.expires_at: datetime.utcnow() - timedelta(minutes=1)})
    db.commit()

    assert (await admin_client.get("/api/admin/media")).status_code == 401
    assert db.query(AdminSession).count() == 0


@pytest.mark.asyncio
async def test_logout_redirects_and_destroys_session(admin_client, db):
    response = await admin_client.post("/api/admin/logout")

    assert response.status_code == 303
    assert response.headers["location"] == "https://volkanozcihan.com/"
    assert db.query(AdminSession).count() == 0
    assert (await admin_client.get("/api/admin/media")).status_code == 401


@pytest.mark.asyncio
async def test_logout_without_session_is_noop(client):
    response = await client.post("/api/admin/logout")
    assert response.status_code == 303


@pytest.mark.asyncio
async def test_forgot_password_unknown_email_still_succeeds(client, db, outbound):
    response = await client.post("/api/admin/forgot-password", json={"email": "nobody@example.com"})

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert db.query(AdminPasswordReset).count() == 0
    assert outbound.to("api.resend.com") == []


@pytest.mark.asyncio
async def test_reset_password_flow_is_single_use(admin_client, db, outbound):
    response = await admin_client.post("/api/admin/forgot-password", json={"email": ADMIN["email"]})
    assert response.status_code == 200

    token = _reset_token_from_email(outbound)
    stored = db.query(AdminPasswordReset).one()
    assert stored.token_hash != token

    response = await admin_client.post(
        "/api/admin/reset-password", json={"token": token, "password": "brandnewpass"}
    )
    assert response.status_code == 200
    # Every session of the admin is gone
    assert db.query(AdminSession).count() == 0

    response = await admin_client.post(
        "/api/admin/reset-password", json={"token": token, "password": "yetanotherpass"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Geçersiz veya süresi dolmuş bağlantı."}

    login = await admin_client.post(
        "/api/admin/login", json={"email": ADMIN["email"], "password": "brandnewpass"}
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_new_reset_request_invalidates_previous_token(admin_client, db, outbound):
    await admin_client.post("/api/admin/forgot-password", json={"email": ADMIN["email"]})
    first = _reset_token_from_email(outbound)
    await admin_client.post("/api/admin/forgot-password", json={"email": ADMIN["email"]})
    second = _reset_token_from_email(outbound)

    assert first != second
    assert db.query(AdminPasswordReset).count() == 1

    response = await admin_client.post(
        "/api/admin/reset-password", json={"token": first, "password": "brandnewpass"}
    )
    assert response.status_code == 400

    response = await admin_client.post(
        "/api/admin/reset-password", json={"token": second, "password": "brandnewpass"}
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_expired_reset_token_is_invalid(admin_client, db, outbound):
    await admin_client.post("/api/admin/forgot-password", json={"email": ADMIN["email"]})
    token = _reset_token_from_email(outbound)
    db.query(AdminPasswordReset).update(
        {AdminPasswordReset.expires_at: datetime.utcnow() - timedelta(seconds=1)}
    )
    db.commit()

    response = await admin_client.post(
        "/api/admin/reset-password", json={"token": token, "password": "brandnewpass"}
    )
    assert response.status_code == 400
