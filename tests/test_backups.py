import json
from datetime import datetime

import pytest

from therapy_site.models.database import BackupExport, ContactSubmission
from therapy_site.models.settings import BackupSettings, SettingKey
from therapy_site.services.backup_service import BackupService, latest_schedule_time, should_run_backup
from therapy_site.services.settings_service import SettingsRegistry, set_setting

# 2026-10-14 is a Wednesday
NOW = datetime(2026, 10, 14, 10, 0)
CRON_HEADERS = {"Authorization": "Bearer cron-secret"}


def test_manual_never_runs():
    assert not should_run_backup(BackupSettings(frequency="manual"), NOW)


def test_first_run_is_due():
    assert should_run_backup(BackupSettings(frequency="daily"), NOW)


@pytest.mark.parametrize(
    "settings, expected",
    [
        (BackupSettings(frequency="daily", time="02:00"), datetime(2026, 10, 14, 2, 0)),
        (BackupSettings(frequency="daily", time="23:00"), datetime(2026, 10, 13, 23, 0)),
        # Monday
        (BackupSettings(frequency="weekly", day_of_week=1, time="02:00"), datetime(2026, 10, 12, 2, 0)),
        # Sunday = 0
        (BackupSettings(frequency="weekly", day_of_week=0, time="02:00"), datetime(2026, 10, 11, 2, 0)),
        # Friday lies ahead, so last week's
        (BackupSettings(frequency="weekly", day_of_week=5, time="02:00"), datetime(2026, 10, 9, 2, 0)),
        (BackupSettings(frequency="monthly", day_of_month=1, time="02:00"), datetime(2026, 10, 1, 2, 0)),
        (BackupSettings(frequency="monthly", day_of_month=20, time="02:00"), datetime(2026, 9, 20, 2, 0)),
    ],
)
def test_latest_schedule_time(settings, expected):
    assert latest_schedule_time(settings, NOW) == expected


def test_monthly_wraps_to_previous_year():
    settings = BackupSettings(frequency="monthly", day_of_month=15, time="02:00")
    assert latest_schedule_time(settings, datetime(2026, 1, 3, 9, 0)) == datetime(2025, 12, 15, 2, 0)


def test_due_only_after_schedule_passes():
    settings = BackupSettings(frequency="daily", time="02:00", last_run_at="2026-10-14T02:05:00")
    assert not should_run_backup(settings, NOW)

    settings.last_run_at = "2026-10-13T02:05:00"
    assert should_run_backup(settings, NOW)


@pytest.mark.asyncio
async def test_create_export_completed(db, storage, outbound):
    db.add(ContactSubmission(name="Ayşe", email="a@x.com", message="Merhaba"))
    db.commit()

    export = await BackupService(db, storage).create_export()

    assert export.status == "COMPLETED"
    assert export.file_key.startswith("backup-") and export.file_key.endswith(".json")
    assert export.file_url.endswith(f"/storage/v1/object/public/backups/{export.file_key}")
    assert export.completed_at is not None

    dump = json.loads(outbound.to("storage.example.com")[0].read())
    assert set(dump) == {"generatedAt", "contacts", "bookings", "assessments", "clients"}
    assert dump["contacts"][0]["name"] == "Ayşe"


@pytest.mark.asyncio
async def test_create_export_failed(db, storage, outbound):
    outbound.fail_hosts.add("storage.example.com")

    export = await BackupService(db, storage).create_export()

    assert export.status == "FAILED"
    assert "500" in export.error_message
    assert export.file_url is None


@pytest.mark.asyncio
async def test_admin_backups(admin_client, db):
    response = await admin_client.post("/api/admin/backups")

    assert response.status_code == 200
    assert response.json()["export"]["status"] == "COMPLETED"

    listing = await admin_client.get("/api/admin/backups")
    assert [e["status"] for e in listing.json()["exports"]] == ["COMPLETED"]


@pytest.mark.asyncio
async def test_cron_requires_bearer_secret(client):
    assert (await client.get("/api/cron/backups")).status_code == 401
    response = await client.get("/api/cron/backups", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_cron_open_without_secret(client, test_config):
    test_config.cron.secret = None
    response = await client.post("/api/cron/backups")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_cron_runs_due_backup_and_marks_run(client, db):
    response = await client.get("/api/cron/backups", headers=CRON_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["skipped"] is False
    assert body["result"]["status"] == "COMPLETED"
    assert SettingsRegistry(db).get_backup_settings().last_run_at is not None

    again = await client.get("/api/cron/backups", headers=CRON_HEADERS)
    assert again.json()["skipped"] is True
    assert db.query(BackupExport).count() == 1


@pytest.mark.asyncio
async def test_cron_failed_backup_does_not_mark_run(client, db, outbound):
    outbound.fail_hosts.add("storage.example.com")

    response = await client.post("/api/cron/backups", headers=CRON_HEADERS)

    assert response.json()["success"] is False
    assert response.json()["result"]["status"] == "FAILED"
    assert SettingsRegistry(db).get_backup_settings().last_run_at is None


@pytest.mark.asyncio
async def test_cron_manual_schedule_skips(client, db):
    SettingsRegistry(db).set_backup_settings(BackupSettings(frequency="manual"))

    response = await client.get("/api/cron/backups", headers=CRON_HEADERS)

    assert response.json() == {"success": True, "skipped": True, "result": None}
    assert db.query(BackupExport).count() == 0


@pytest.mark.asyncio
async def test_cron_survives_out_of_range_stored_time(client, db):
    set_setting(
        db,
        SettingKey.BACKUP_SETTINGS.value,
        {"frequency": "daily", "time": "25:00", "lastRunAt": "2026-01-01T00:00:00"},
    )

    response = await client.get("/api/cron/backups", headers=CRON_HEADERS)

    assert response.status_code == 200
    assert response.json()["success"] is True
