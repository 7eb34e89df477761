from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from therapy_site.models.settings import TIME_PATTERN, BackupSettings, EmailSettings, SiteInfoSettings


class CamelRequest(BaseModel):
    """Accepts camelCase (as sent by the admin UI) or snake_case keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SetupRequest(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    password: str = Field(..., min_length=8)


class LoginRequest(CamelRequest):
    email: EmailStr
    password: str = Field(..., min_length=8)
    remember_me: Optional[bool] = False


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=32)
    password: str = Field(..., min_length=8)


class TestEmailRequest(BaseModel):
    to: EmailStr
    message: str = Field(..., min_length=1)


class ContactRequest(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str = Field(..., min_length=5)
    source: Optional[str] = None


class AssessmentCreateRequest(CamelRequest):
    session_id: str = Field(..., min_length=1)
    answers: Dict[str, Any]


class AssessmentAnalyzeRequest(CamelRequest):
    session_id: str = Field(..., min_length=1)
    answers: Dict[str, Any]


class BookingCreateRequest(CamelRequest):
    service_id: int
    date: date
    start_time: str = Field(..., pattern=TIME_PATTERN)
    name: str = Field(..., min_length=2)
    email: EmailStr
    phone: str = Field(..., min_length=10)
    child_name: Optional[str] = None
    child_age: Optional[str] = None
    notes: Optional[str] = None


class SettingsUpdateRequest(CamelRequest):
    site_info: SiteInfoSettings
    email_settings: EmailSettings
    backup_settings: BackupSettings
    # Plain key from the form; stored encrypted in email settings
    resend_api_key_plain: Optional[str] = None


class ContentUpdateRequest(BaseModel):
    data: Dict[str, Any]


class ServiceRequest(CamelRequest):
    slug: str = Field(..., min_length=1, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    title: str = Field(..., min_length=1)
    short_title: Optional[str] = None
    description: str = ""
    long_description: Optional[str] = None
    duration: int = Field(default=60, ge=10, le=480)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    category: str = "CHILD_THERAPY"
    image: Optional[str] = None
    highlights: List[str] = Field(default_factory=list)
    order: int = 0
    is_active: bool = True

    @field_validator("highlights")
    @classmethod
    def strip_highlights(cls, v):
        return [line.strip() for line in v if line and line.strip()]


class LegalPageUpdateRequest(CamelRequest):
    title: str = Field(..., min_length=1)
    content: str = ""
    is_published: bool = True
