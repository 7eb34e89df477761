from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from therapy_site.api.deps import get_backup_service, get_email_service, get_translator
from therapy_site.core.auth import verify_cron_secret
from therapy_site.core.logging import log_error, log_info
from therapy_site.infra.database import get_db
from therapy_site.models.response import BackupExportOut, CronBackupResponse
from therapy_site.services.backup_service import BackupService
from therapy_site.services.booking_service import BookingService
from therapy_site.services.email_service import EmailService

router = APIRouter(dependencies=[Depends(verify_cron_secret)])


@router.api_route("/backups", methods=["GET", "POST"], response_model=CronBackupResponse)
async def cron_backups(
    request: Request,
    backups: BackupService = Depends(get_backup_service),
    _=Depends(get_translator),
):
    """Run a backup when the schedule says one is due"""
    now = datetime.now()
    try:
        if not await run_in_threadpool(backups.is_due, now):
            return CronBackupResponse(skipped=True)
        export = await backups.create_export()
        if export.status == "COMPLETED":
            await run_in_threadpool(backups.mark_run, now)
    except Exception as e:
        backups.db.rollback()
        log_error(request, f"Scheduled backup error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.backup_failed"))

    log_info(request, f"Scheduled backup {export.id}: {export.status}")
    return CronBackupResponse(
        success=export.status == "COMPLETED",
        result=BackupExportOut.model_validate(export),
    )


@router.api_route("/reminders", methods=["GET", "POST"])
async def cron_reminders(
    request: Request,
    db: Session = Depends(get_db),
    email: EmailService = Depends(get_email_service),
    _=Depends(get_translator),
):
    try:
        processed = await BookingService(db).process_due_reminders(email)
    except Exception as e:
        db.rollback()
        log_error(request, f"Reminder run error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.operation_failed"))

    if processed:
        log_info(request, f"Reminders processed: {processed}")
    return {"success": True, "processed": processed}
