import secrets

from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from therapy_site.config.settings import Config, get_config
from therapy_site.i18n import i18n
from therapy_site.infra.database import get_db
from therapy_site.models.database import AdminUser
from therapy_site.services.auth_service import AuthService, get_auth_service
from therapy_site.utils.locale import get_locale


def _translator(request: Request):
    locale = get_locale(request.headers.get("accept-language"))
    return i18n.translator(locale)


def require_admin(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
) -> AdminUser:
    """
    Resolve the admin behind the session cookie.
    Missing, expired or forged sessions all yield 401.
    """
    admin = auth.get_admin_from_session(db, request, response)
    if not admin:
        _ = _translator(request)
        raise HTTPException(status_code=401, detail=_("error.unauthorized"))
    return admin


async def verify_cron_secret(
    request: Request,
    cfg: Config = Depends(get_config),
):
    """
    Authorize scheduler callers with `Authorization: Bearer <CRON_SECRET>`.
    Open when no secret is configured.
    """
    secret = cfg.cron.secret
    if not secret:
        return True

    auth_header = request.headers.get("authorization") or ""
    if not secrets.compare_digest(auth_header.encode(), f"Bearer {secret}".encode()):
        _ = _translator(request)
        raise HTTPException(status_code=401, detail=_("error.unauthorized"))
    return True
