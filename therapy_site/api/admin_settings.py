from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from therapy_site.api.deps import get_email_service, get_translator
from therapy_site.config.settings import Config, get_config
from therapy_site.core.auth import require_admin
from therapy_site.core.logging import log_error, log_info, log_warning
from therapy_site.core.security import SecretConfigurationError, encrypt_secret
from therapy_site.infra.database import get_db
from therapy_site.models.database import AdminUser
from therapy_site.models.request import ContentUpdateRequest, SettingsUpdateRequest, TestEmailRequest
from therapy_site.models.response import SuccessResponse
from therapy_site.services.content_service import (
    content_defaults_for,
    get_content_entry,
    save_content_entry,
)
from therapy_site.services.email_service import EmailService
from therapy_site.services.settings_service import SettingsRegistry
from therapy_site.utils.locale import mask_email

router = APIRouter(dependencies=[Depends(require_admin)])


def _settings_payload(registry: SettingsRegistry) -> dict:
    email_settings = registry.get_email_settings()
    return {
        "siteInfo": registry.get_site_info().model_dump(by_alias=True, mode="json"),
        "emailSettings": email_settings.model_dump(
            by_alias=True, mode="json", exclude={"resend_api_key_encrypted"}
        ),
        "backupSettings": registry.get_backup_settings().model_dump(by_alias=True, mode="json"),
        "hasResendApiKey": bool(email_settings.resend_api_key_encrypted),
    }


@router.get("/settings")
def read_settings(db: Session = Depends(get_db)):
    return _settings_payload(SettingsRegistry(db))


@router.put("/settings")
def update_settings(
    request: Request,
    payload: SettingsUpdateRequest,
    db: Session = Depends(get_db),
    cfg: Config = Depends(get_config),
    _=Depends(get_translator),
):
    """
    Replace all three settings groups.
    A plain Resend key is encrypted before storing; without one the stored key is kept.
    """
    registry = SettingsRegistry(db)
    email_settings = payload.email_settings.model_copy()

    try:
        if payload.resend_api_key_plain:
            email_settings.resend_api_key_encrypted = encrypt_secret(
                payload.resend_api_key_plain.strip(), cfg.auth.encryption_secret
            )
        else:
            email_settings.resend_api_key_encrypted = registry.get_email_settings().resend_api_key_encrypted

        registry.set_site_info(payload.site_info)
        registry.set_email_settings(email_settings)
        registry.set_backup_settings(payload.backup_settings)
    except SecretConfigurationError as e:
        log_error(request, f"Settings encryption error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.settings_save_failed"))
    except Exception as e:
        db.rollback()
        log_error(request, f"Settings save error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.settings_save_failed"))

    log_info(request, "Settings updated")
    return _settings_payload(registry)


@router.post("/email/test", response_model=SuccessResponse)
async def send_test_email(
    request: Request,
    payload: TestEmailRequest,
    email: EmailService = Depends(get_email_service),
):
    """Provider errors are logged, never echoed to the caller"""
    result = await email.send_test_email(payload.to, payload.message)
    if not result.success:
        log_warning(request, f"Test email to {mask_email(payload.to)} failed: {result.error}")
    return SuccessResponse(success=result.success)


@router.get("/content/{key}")
def read_content(
    key: str,
    db: Session = Depends(get_db),
    _=Depends(get_translator),
):
    defaults = content_defaults_for(key)
    if defaults is None:
        raise HTTPException(status_code=404, detail=_("error.not_found"))
    return {"key": key, "data": get_content_entry(db, key, defaults)}


@router.put("/content/{key}")
def update_content(
    request: Request,
    key: str,
    body: dict = Body(...),
    admin: AdminUser = Depends(require_admin),
    db: Session = Depends(get_db),
    _=Depends(get_translator),
):
    if content_defaults_for(key) is None:
        raise HTTPException(status_code=404, detail=_("error.not_found"))

    try:
        payload = ContentUpdateRequest.model_validate(body)
    except ValidationError:
        raise HTTPException(status_code=400, detail=_("error.invalid_payload"))

    try:
        entry = save_content_entry(db, key, payload.data, admin.id)
    except Exception as e:
        db.rollback()
        log_error(request, f"Content save error ({key}): {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.operation_failed"))

    log_info(request, f"Content updated: {key}")
    return {"key": entry.key, "data": entry.data}
