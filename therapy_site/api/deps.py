from fastapi import Depends, Request
from sqlalchemy.orm import Session

from therapy_site.config.settings import Config, get_config
from therapy_site.i18n import i18n
from therapy_site.infra.database import get_db
from therapy_site.infra.storage import ObjectStorage, get_storage
from therapy_site.services.assessment_service import AssessmentAnalyzer
from therapy_site.services.backup_service import BackupService
from therapy_site.services.email_service import EmailService
from therapy_site.services.media_service import MediaService
from therapy_site.services.whatsapp_service import WhatsAppService
from therapy_site.utils.locale import get_locale


def get_translator(request: Request):
    locale = get_locale(request.headers.get("accept-language"))
    return i18n.translator(locale)


def get_email_service(
    request: Request,
    db: Session = Depends(get_db),
    cfg: Config = Depends(get_config),
) -> EmailService:
    return EmailService(db, cfg, locale=get_locale(request.headers.get("accept-language")))


def get_whatsapp_service(
    request: Request,
    cfg: Config = Depends(get_config),
) -> WhatsAppService:
    return WhatsAppService(cfg.whatsapp, locale=get_locale(request.headers.get("accept-language")))


def get_media_service(
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> MediaService:
    return MediaService(db, storage)


def get_backup_service(
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> BackupService:
    return BackupService(db, storage)


def get_assessment_analyzer(cfg: Config = Depends(get_config)) -> AssessmentAnalyzer:
    return AssessmentAnalyzer(cfg.ai)
