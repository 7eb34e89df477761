from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Response models serialize with camelCase keys and read ORM rows"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class SuccessResponse(BaseModel):
    success: bool = True


class MediaAssetOut(ApiModel):
    id: int
    url: str
    storage_path: Optional[str] = None
    type: str
    title: Optional[str] = None
    alt_text: Optional[str] = None
    size: Optional[int] = None
    created_at: Optional[datetime] = None


class MediaAssetList(BaseModel):
    assets: List[MediaAssetOut]


class MediaAssetResponse(BaseModel):
    asset: MediaAssetOut


class PublicFile(ApiModel):
    name: str
    url: str
    type: str
    size: int
    folder: str


class PublicFileListing(BaseModel):
    files: List[PublicFile]
    folders: List[str]
    stats: Dict[str, int]


class BackupExportOut(ApiModel):
    id: int
    status: str
    file_url: Optional[str] = None
    file_key: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CronBackupResponse(BaseModel):
    success: bool = True
    skipped: bool = False
    result: Optional[BackupExportOut] = None


class ServiceOption(ApiModel):
    id: int
    title: str
    duration: int


class ServiceOut(ApiModel):
    id: int
    slug: str
    title: str
    short_title: Optional[str] = None
    description: Optional[str] = None
    long_description: Optional[str] = None
    duration: int
    price: Optional[Decimal] = None
    category: Optional[str] = None
    image: Optional[str] = None
    highlights: Optional[List[str]] = None
    order: int = 0
    is_active: bool = True


class LegalLink(ApiModel):
    slug: str
    title: str


class LegalPageOut(ApiModel):
    id: Optional[int] = None
    slug: str
    title: str
    content: str = ""
    is_published: bool = True


class TimeSlot(ApiModel):
    time: str
    display_time: str
    available: bool = True


class SlotsResponse(BaseModel):
    slots: List[TimeSlot]
    message: Optional[str] = None


class BookingSummary(BaseModel):
    id: int
    date: date
    time: str
    service: str


class HomePageContent(ApiModel):
    content: Dict[str, Any]
    site_info: Dict[str, Any]
    services: List[ServiceOut]
    legal_pages: List[LegalLink]


class AssessmentAnalysis(BaseModel):
    """Section scores (0-100), the full model answer and an urgency level"""
    scores: Dict[str, int]
    recommendations: str
    urgency: str


class AssessmentAnalysisResponse(BaseModel):
    success: bool = True
    analysis: AssessmentAnalysis
