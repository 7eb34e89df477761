from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from therapy_site.api.deps import get_backup_service, get_translator
from therapy_site.core.auth import require_admin
from therapy_site.core.logging import log_error, log_info
from therapy_site.models.database import AdminUser
from therapy_site.models.response import BackupExportOut
from therapy_site.services.backup_service import BackupService

router = APIRouter(dependencies=[Depends(require_admin)])


class BackupExportList(BaseModel):
    exports: List[BackupExportOut]


class BackupExportResponse(BaseModel):
    export: BackupExportOut


@router.get("/backups", response_model=BackupExportList)
def list_backups(backups: BackupService = Depends(get_backup_service)):
    return BackupExportList(exports=[BackupExportOut.model_validate(e) for e in backups.list_exports()])


@router.post("/backups", response_model=BackupExportResponse)
async def trigger_backup(
    request: Request,
    admin: AdminUser = Depends(require_admin),
    backups: BackupService = Depends(get_backup_service),
    _=Depends(get_translator),
):
    """Manual export; the result row says whether it completed"""
    try:
        export = await backups.create_export(created_by_id=admin.id)
    except Exception as e:
        backups.db.rollback()
        log_error(request, f"Backup error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.backup_failed"))

    log_info(request, f"Backup export {export.id}: {export.status}")
    return BackupExportResponse(export=BackupExportOut.model_validate(export))
