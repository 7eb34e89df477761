"""Scheduled and on-demand JSON exports of client data to object storage."""
import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from therapy_site.infra.storage import ObjectStorage
from therapy_site.models.database import Assessment, BackupExport, Booking, Client, ContactSubmission
from therapy_site.models.settings import BackupSettings
from therapy_site.services.settings_service import SettingsRegistry

logger = logging.getLogger(__name__)


def latest_schedule_time(settings: BackupSettings, now: datetime) -> datetime:
    """Most recent scheduled run at or before now"""
    hour, minute = (int(part) for part in settings.time.split(":"))
    base = now.replace(hour=hour, minute=minute, second=0, microsecond=0)

    if settings.frequency == "daily":
        if now < base:
            base -= timedelta(days=1)
        return base

    if settings.frequency == "weekly":
        # day_of_week counts from Sunday = 0
        current_day = (base.weekday() + 1) % 7
        base -= timedelta(days=current_day - settings.day_of_week)
        if now < base:
            base -= timedelta(days=7)
        return base

    target_day = min(max(settings.day_of_month, 1), 28)
    base = base.replace(day=target_day)
    if now < base:
        if base.month == 1:
            base = base.replace(year=base.year - 1, month=12)
        else:
            base = base.replace(month=base.month - 1)
    return base


def should_run_backup(settings: BackupSettings, now: Optional[datetime] = None) -> bool:
    if settings.frequency == "manual":
        return False

    now = now or datetime.now()
    last_run_at = datetime.fromisoformat(settings.last_run_at) if settings.last_run_at else None
    if last_run_at is not None and last_run_at.tzinfo is not None:
        last_run_at = last_run_at.astimezone().replace(tzinfo=None)

    return last_run_at is None or last_run_at < latest_schedule_time(settings, now)


def _row_to_dict(row) -> Dict[str, Any]:
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}


class BackupService:
    """Exports contacts, bookings, assessments and clients as one JSON document"""

    def __init__(self, db: Session, storage: ObjectStorage):
        self.db = db
        self.storage = storage
        self.settings = SettingsRegistry(db)

    def list_exports(self, limit: int = 25) -> List[BackupExport]:
        return (
            self.db.query(BackupExport)
            .order_by(BackupExport.created_at.desc(), BackupExport.id.desc())
            .limit(limit)
            .all()
        )

    def is_due(self, now: Optional[datetime] = None) -> bool:
        return should_run_backup(self.settings.get_backup_settings(), now)

    def mark_run(self, when: Optional[datetime] = None) -> None:
        settings = self.settings.get_backup_settings()
        settings.last_run_at = (when or datetime.now()).isoformat()
        self.settings.set_backup_settings(settings)

    def _collect(self) -> Dict[str, Any]:
        bookings = []
        for booking in self.db.query(Booking).all():
            item = _row_to_dict(booking)
            item["service"] = _row_to_dict(booking.service) if booking.service else None
            item["client"] = _row_to_dict(booking.client) if booking.client else None
            bookings.append(item)

        return {
            "generatedAt": datetime.utcnow().isoformat(),
            "contacts": [_row_to_dict(row) for row in self.db.query(ContactSubmission).all()],
            "bookings": bookings,
            "assessments": [_row_to_dict(row) for row in self.db.query(Assessment).all()],
            "clients": [_row_to_dict(row) for row in self.db.query(Client).all()],
        }

    async def create_export(self, created_by_id: Optional[int] = None) -> BackupExport:
        """
        Record a PENDING export, upload the dump and finish as COMPLETED or FAILED.
        Failures are stored on the record, never raised.
        """
        record = BackupExport(status="PENDING", created_by_id=created_by_id)
        self.db.add(record)
        self.db.commit()

        try:
            payload = json.dumps(self._collect(), indent=2, default=str, ensure_ascii=False)
            file_key = f"backup-{datetime.utcnow().strftime('%Y-%m-%dT%H-%M-%S-%f')}.json"
            file_url = await self.storage.upload(
                self.storage.config.backup_bucket,
                file_key,
                payload.encode("utf-8"),
                content_type="application/json",
            )
            record.status = "COMPLETED"
            record.file_url = file_url
            record.file_key = file_key
            record.completed_at = datetime.utcnow()
        except Exception as e:
            logger.error(f"Backup export {record.id} failed: {e}")
            self.db.rollback()
            record.status = "FAILED"
            record.error_message = str(e) or "Backup failed"

        self.db.commit()
        self.db.refresh(record)
        return record
