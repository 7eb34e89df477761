import pytest
from sqlalchemy.exc import OperationalError

from therapy_site.core.security import decrypt_secret
from therapy_site.models.database import AppSetting
from therapy_site.models.settings import BackupSettings, EmailSettings, SettingKey, SiteInfoSettings
from therapy_site.services.settings_service import SettingsRegistry, get_setting, set_setting


def test_get_setting_missing_key_returns_fallback(db):
    assert get_setting(db, "missing", "fallback") == "fallback"


def test_get_setting_merges_dict_fallback(db):
    set_setting(db, "feature", {"enabled": True})
    assert get_setting(db, "feature", {"enabled": False, "limit": 3}) == {"enabled": True, "limit": 3}


def test_set_setting_replaces_value(db):
    set_setting(db, "feature", {"a": 1, "b": 2})
    set_setting(db, "feature", {"a": 5})

    row = db.get(AppSetting, "feature")
    assert row.value == {"a": 5}
    assert db.query(AppSetting).count() == 1


def test_get_setting_store_error_returns_fallback(db, monkeypatch):
    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "get", broken_query)
    monkeypatch.setattr(db, "query", broken_query)
    assert get_setting(db, "site_info", {"siteName": "x"}) == {"siteName": "x"}


def test_registry_defaults(db):
    registry = SettingsRegistry(db)

    assert registry.get_site_info() == SiteInfoSettings()
    assert registry.get_email_settings().reminder_offsets_minutes == [1440, 240]
    assert registry.get_backup_settings().frequency == "weekly"


def test_registry_round_trip_uses_camel_case(db):
    registry = SettingsRegistry(db)
    registry.set_backup_settings(BackupSettings(frequency="daily", time="03:30"))

    stored = db.get(AppSetting, SettingKey.BACKUP_SETTINGS.value).value
    assert stored["frequency"] == "daily"
    assert "dayOfWeek" in stored
    assert registry.get_backup_settings().time == "03:30"


def test_registry_invalid_stored_value_falls_back(db):
    set_setting(db, SettingKey.EMAIL_SETTINGS.value, {"reminderOffsetsMinutes": [1]})
    assert SettingsRegistry(db).get_email_settings() == EmailSettings()


def test_registry_rejects_wrong_type(db):
    with pytest.raises(TypeError):
        SettingsRegistry(db).set(SettingKey.SITE_INFO, BackupSettings())


@pytest.mark.asyncio
async def test_admin_settings_read(admin_client):
    response = await admin_client.get("/api/admin/settings")

    assert response.status_code == 200
    body = response.json()
    assert body["siteInfo"]["siteName"] == "Volkan Özcihan"
    assert body["backupSettings"]["frequency"] == "weekly"
    assert "resendApiKeyEncrypted" not in body["emailSettings"]
    assert body["hasResendApiKey"] is False


@pytest.mark.asyncio
async def test_admin_settings_update_encrypts_resend_key(admin_client, db, test_config):
    current = (await admin_client.get("/api/admin/settings")).json()
    current["siteInfo"]["phone"] = "+90 212 000 00 00"
    current["emailSettings"]["useResendOverride"] = True
    current["backupSettings"]["frequency"] = "daily"
    current.pop("hasResendApiKey")
    current["resendApiKeyPlain"] = "re_override_key"

    response = await admin_client.put("/api/admin/settings", json=current)

    assert response.status_code == 200
    assert response.json()["hasResendApiKey"] is True
    registry = SettingsRegistry(db)
    assert registry.get_site_info().phone == "+90 212 000 00 00"
    assert registry.get_backup_settings().frequency == "daily"
    encrypted = registry.get_email_settings().resend_api_key_encrypted
    assert encrypted != "re_override_key"
    assert decrypt_secret(encrypted, test_config.auth.encryption_secret) == "re_override_key"


@pytest.mark.asyncio
async def test_admin_settings_update_keeps_existing_key(admin_client, db):
    current = (await admin_client.get("/api/admin/settings")).json()
    current.pop("hasResendApiKey")
    await admin_client.put("/api/admin/settings", json={**current, "resendApiKeyPlain": "re_first"})
    encrypted = SettingsRegistry(db).get_email_settings().resend_api_key_encrypted

    response = await admin_client.put("/api/admin/settings", json=current)

    assert response.status_code == 200
    db.expire_all()
    assert SettingsRegistry(db).get_email_settings().resend_api_key_encrypted == encrypted


@pytest.mark.asyncio
async def test_admin_settings_update_without_secret_fails(admin_client, test_config):
    current = (await admin_client.get("/api/admin/settings")).json()
    current.pop("hasResendApiKey")
    test_config.auth.encryption_secret = None

    response = await admin_client.put("/api/admin/settings", json={**current, "resendApiKeyPlain": "re_key"})

    assert response.status_code == 500
    assert "error" in response.json()


@pytest.mark.asyncio
async def test_admin_settings_validation(admin_client):
    current = (await admin_client.get("/api/admin/settings")).json()
    current["backupSettings"]["time"] = "2am"

    response = await admin_client.put("/api/admin/settings", json=current)
    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["25:00", "24:00", "12:60", "9:30"])
async def test_admin_settings_rejects_out_of_range_time(admin_client, db, value):
    current = (await admin_client.get("/api/admin/settings")).json()
    current["backupSettings"]["time"] = value

    response = await admin_client.put("/api/admin/settings", json=current)

    assert response.status_code == 400
    assert SettingsRegistry(db).get_backup_settings().time == "02:00"


@pytest.mark.parametrize("value", ["00:00", "09:05", "19:59", "23:59"])
def test_backup_time_accepts_24_hour_clock(value):
    assert BackupSettings(time=value).time == value


def test_registry_out_of_range_stored_time_falls_back(db):
    set_setting(db, SettingKey.BACKUP_SETTINGS.value, {"frequency": "daily", "time": "25:00"})
    assert SettingsRegistry(db).get_backup_settings() == BackupSettings()


@pytest.mark.asyncio
async def test_test_email_sends_through_resend(admin_client, outbound):
    response = await admin_client.post(
        "/api/admin/email/test", json={"to": "someone@example.com", "message": "Merhaba <b>dünya</b>"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    sent = outbound.to("api.resend.com")[-1]
    assert sent.headers["authorization"] == "Bearer re_test_key"
    assert "&lt;b&gt;" in sent.read().decode()


@pytest.mark.asyncio
async def test_test_email_provider_failure(admin_client, outbound):
    outbound.fail_hosts.add("api.resend.com")
    response = await admin_client.post(
        "/api/admin/email/test", json={"to": "someone@example.com", "message": "Merhaba"}
    )

    assert response.status_code == 200
    assert response.json() == {"success": False}
    assert "provider down" not in response.text
    assert "resend.com" not in response.text
