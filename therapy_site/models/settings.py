from enum import Enum
from typing import Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

# 24-hour HH:MM
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CamelModel(BaseModel):
    """Settings are stored and exchanged with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SocialLinks(CamelModel):
    facebook: str = "#"
    instagram: str = "#"
    youtube: str = "#"
    linkedin: str = "#"


class PoweredBy(CamelModel):
    label: str = ""
    url: str = ""
    logo: str = ""


class SiteInfoSettings(CamelModel):
    site_name: str = Field(default="Volkan Özcihan", min_length=1)
    title: str = Field(default="Uzman Fizyoterapist", min_length=1)
    phone: str = Field(default="+90 532 286 25 21", min_length=3)
    email: EmailStr = "info@volkanozcihan.com"
    whatsapp: str = Field(default="905322862521", min_length=6)
    address: str = Field(default="Arıköy Sitesi, Üskümarköy, 34450 Sarıyer/İstanbul", min_length=3)
    address_note: str = "Detaylı adres randevu sonrası paylaşılır"
    working_hours_weekday: str = Field(default="Pzt-Cum: 09:00-18:00", min_length=3)
    working_hours_weekend: str = Field(default="Cmt: 09:00-14:00", min_length=3)
    map_embed_url: str = ""
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    powered_by: PoweredBy = Field(default_factory=PoweredBy)
    timezone_offset: str = Field(default="+03:00", pattern=r"^[+-]\d{2}:\d{2}$")


class EmailTemplateSettings(CamelModel):
    confirmation_subject: str = Field(default="Randevunuz onaylandı", min_length=1)
    confirmation_body: str = Field(
        default="Merhaba {{name}}, randevunuz alındı. Tarih: {{date}}, Saat: {{time}}, Hizmet: {{service}}.",
        min_length=1,
    )
    reminder_subject: str = Field(default="Randevu hatırlatma", min_length=1)
    reminder_body: str = Field(
        default="Merhaba {{name}}, randevunuz yaklaşıyor. Tarih: {{date}}, Saat: {{time}}, Hizmet: {{service}}.",
        min_length=1,
    )
    thank_you_subject: str = Field(default="Teşekkür ederiz", min_length=1)
    thank_you_body: str = Field(
        default="Merhaba {{name}}, ziyaretiniz için teşekkür ederiz. Geri bildiriminizi bekleriz.",
        min_length=1,
    )


class EmailSettings(CamelModel):
    from_name: str = Field(default="Volkan Özcihan", min_length=1)
    from_email: EmailStr = "onboarding@resend.dev"
    reply_to: Optional[EmailStr] = None
    notification_email: EmailStr = "info@volkanozcihan.com"
    use_resend_override: bool = False
    resend_api_key_encrypted: Optional[str] = None
    enable_booking_confirmation: bool = True
    enable_reminders: bool = True
    reminder_offsets_minutes: List[int] = Field(default_factory=lambda: [1440, 240])
    enable_thank_you: bool = True
    thank_you_offset_minutes: int = Field(default=120, ge=10)
    templates: EmailTemplateSettings = Field(default_factory=EmailTemplateSettings)

    @field_validator("reminder_offsets_minutes")
    @classmethod
    def validate_offsets(cls, v):
        if any(offset < 10 for offset in v):
            raise ValueError("Reminder offsets must be at least 10 minutes")
        return v


class BackupSettings(CamelModel):
    frequency: Literal["manual", "daily", "weekly", "monthly"] = "weekly"
    time: str = Field(default="02:00", pattern=TIME_PATTERN)
    day_of_week: int = Field(default=1, ge=0, le=6)
    day_of_month: int = Field(default=1, ge=1, le=28)
    last_run_at: Optional[str] = None


class SettingKey(str, Enum):
    SITE_INFO = "site_info"
    EMAIL_SETTINGS = "email_settings"
    BACKUP_SETTINGS = "backup_settings"


SETTING_MODELS: Dict[SettingKey, Type[CamelModel]] = {
    SettingKey.SITE_INFO: SiteInfoSettings,
    SettingKey.EMAIL_SETTINGS: EmailSettings,
    SettingKey.BACKUP_SETTINGS: BackupSettings,
}
