import logging
from typing import Any, TypeVar

from pydantic import ValidationError
from sqlalchemy.orm import Session

from therapy_site.models.database import AppSetting
from therapy_site.models.settings import (
    SETTING_MODELS,
    BackupSettings,
    CamelModel,
    EmailSettings,
    SettingKey,
    SiteInfoSettings,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=CamelModel)


def get_setting(db: Session, key: str, fallback: T) -> T:
    """
    Read a JSON setting. Missing rows and store errors return the fallback;
    dict fallbacks are shallow-merged with the stored value.
    """
    try:
        setting = db.get(AppSetting, key)
    except Exception as e:
        logger.warning(f"Setting fetch failed: {key}: {e}")
        db.rollback()
        return fallback

    if setting is None or setting.value is None:
        return fallback
    if isinstance(fallback, dict) and isinstance(setting.value, dict):
        return {**fallback, **setting.value}
    return setting.value


def set_setting(db: Session, key: str, value: Any) -> None:
    """Upsert the row for key, replacing the whole value"""
    setting = db.get(AppSetting, key)
    if setting is None:
        db.add(AppSetting(key=key, value=value))
    else:
        setting.value = value
    db.commit()


class SettingsRegistry:
    """Typed accessors over the key-value settings table"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: SettingKey) -> M:
        model = SETTING_MODELS[key]
        default = model()
        raw = get_setting(self.db, key.value, default.model_dump(by_alias=True, mode="json"))
        try:
            return model.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Stored setting {key.value} is invalid, using defaults: {e}")
            return default

    def set(self, key: SettingKey, value: CamelModel) -> None:
        model = SETTING_MODELS[key]
        if not isinstance(value, model):
            raise TypeError(f"{key.value} expects {model.__name__}")
        set_setting(self.db, key.value, value.model_dump(by_alias=True, mode="json"))

    def get_site_info(self) -> SiteInfoSettings:
        return self.get(SettingKey.SITE_INFO)

    def set_site_info(self, value: SiteInfoSettings) -> None:
        self.set(SettingKey.SITE_INFO, value)

    def get_email_settings(self) -> EmailSettings:
        return self.get(SettingKey.EMAIL_SETTINGS)

    def set_email_settings(self, value: EmailSettings) -> None:
        self.set(SettingKey.EMAIL_SETTINGS, value)

    def get_backup_settings(self) -> BackupSettings:
        return self.get(SettingKey.BACKUP_SETTINGS)

    def set_backup_settings(self, value: BackupSettings) -> None:
        self.set(SettingKey.BACKUP_SETTINGS, value)
