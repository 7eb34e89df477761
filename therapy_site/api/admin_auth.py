from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from therapy_site.api.deps import get_email_service, get_translator
from therapy_site.config.settings import Config, get_config
from therapy_site.core.logging import log_error, log_info, log_warning
from therapy_site.infra.database import get_db
from therapy_site.infra.rate_limit import auth_rate_limiter
from therapy_site.models.database import AdminUser
from therapy_site.models.request import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SetupRequest,
)
from therapy_site.models.response import SuccessResponse
from therapy_site.services.auth_service import AuthService, get_auth_service
from therapy_site.services.email_service import EmailService
from therapy_site.utils.locale import mask_email

router = APIRouter()


def _admin_exists(db: Session) -> bool:
    return db.query(AdminUser.id).count() > 0


def _find_admin(db: Session, email: str):
    return db.query(AdminUser).filter(AdminUser.email == email).first()


def _create_first_admin(db: Session, auth: AuthService, response: Response, payload: SetupRequest) -> AdminUser:
    admin = AdminUser(
        name=payload.name,
        email=payload.email,
        password_hash=auth.hash_password(payload.password),
    )
    db.add(admin)
    db.commit()
    auth.create_admin_session(db, response, admin.id)
    return admin


@router.post("/setup", response_model=SuccessResponse)
async def setup_admin(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
    _=Depends(get_translator),
):
    """
    Create the first admin; only allowed while no admin exists.
    The body is read after the existence check so a finished setup answers 409 for any payload.
    """
    if await run_in_threadpool(_admin_exists, db):
        raise HTTPException(status_code=409, detail=_("error.setup_completed"))

    try:
        payload = SetupRequest.model_validate(await request.json())
    except ValidationError as e:
        raise RequestValidationError(e.errors())
    except ValueError:
        raise HTTPException(status_code=400, detail=_("error.invalid_payload"))

    try:
        admin = await run_in_threadpool(_create_first_admin, db, auth, response, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=_("error.setup_completed"))
    except Exception as e:
        db.rollback()
        log_error(request, f"Admin setup error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.setup_failed"))

    log_info(request, f"Admin created: {mask_email(admin.email)}")
    return SuccessResponse()


@router.post("/login", response_model=SuccessResponse, dependencies=[Depends(auth_rate_limiter)])
def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
    _=Depends(get_translator),
):
    admin = _find_admin(db, payload.email)
    if not admin or not auth.verify_password(payload.password, admin.password_hash):
        log_warning(request, f"Failed admin login for {mask_email(payload.email)}")
        raise HTTPException(status_code=401, detail=_("error.invalid_login"))

    try:
        auth.create_admin_session(db, response, admin.id, bool(payload.remember_me))
        admin.last_login_at = datetime.utcnow()
        db.commit()
    except Exception as e:
        db.rollback()
        log_error(request, f"Login error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.login_failed"))

    return SuccessResponse()


@router.post("/logout")
def logout(
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
    cfg: Config = Depends(get_config),
):
    redirect = RedirectResponse(url=f"{cfg.site.base_url}/", status_code=303)
    auth.destroy_admin_session(db, request, redirect)
    return redirect


@router.post("/forgot-password", response_model=SuccessResponse, dependencies=[Depends(auth_rate_limiter)])
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
    email: EmailService = Depends(get_email_service),
    cfg: Config = Depends(get_config),
    _=Depends(get_translator),
):
    """Always answers success so valid addresses cannot be enumerated"""
    admin = await run_in_threadpool(_find_admin, db, payload.email)
    if not admin:
        return SuccessResponse()

    try:
        token = await run_in_threadpool(auth.issue_reset_token, db, admin)
    except IntegrityError:
        # A concurrent request for the same admin won the insert
        db.rollback()
        log_warning(request, f"Concurrent reset request for {mask_email(admin.email)}")
        return SuccessResponse()
    except Exception as e:
        db.rollback()
        log_error(request, f"Reset token error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.operation_failed"))

    result = await email.send_admin_password_reset_email(
        admin.email, f"{cfg.site.base_url}/admin/reset-password/{token}"
    )
    if not result.success:
        log_warning(request, f"Reset email not sent to {mask_email(admin.email)}: {result.error}")
    return SuccessResponse()


@router.post("/reset-password", response_model=SuccessResponse, dependencies=[Depends(auth_rate_limiter)])
def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
    _=Depends(get_translator),
):
    try:
        consumed = auth.consume_reset_token(db, payload.token, payload.password)
    except Exception as e:
        db.rollback()
        log_error(request, f"Password reset error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.operation_failed"))

    if not consumed:
        raise HTTPException(status_code=400, detail=_("error.invalid_reset_token"))

    log_info(request, "Admin password reset completed")
    return SuccessResponse()
