import asyncio
import copy
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from therapy_site.models.database import ContentEntry, ContentRevision
from therapy_site.models.response import HomePageContent, ServiceOut
from therapy_site.services.catalog_service import get_active_services
from therapy_site.services.content_defaults import CONTENT_DEFAULTS, DEFAULT_HOME_CONTENT
from therapy_site.services.legal_service import get_legal_pages
from therapy_site.services.settings_service import SettingsRegistry

logger = logging.getLogger(__name__)


def merge_deep(fallback: Any, value: Any) -> Any:
    """
    Overlay stored content on defaults.
    Lists replace wholesale; dicts merge key by key; extra stored keys are kept.
    """
    if isinstance(fallback, list):
        return value if isinstance(value, list) else copy.deepcopy(fallback)

    if isinstance(fallback, dict):
        incoming = value if isinstance(value, dict) else {}
        result = {
            key: merge_deep(base, incoming[key]) if key in incoming else copy.deepcopy(base)
            for key, base in fallback.items()
        }
        for key, item in incoming.items():
            if key not in result:
                result[key] = item
        return result

    return fallback if value is None else value


def get_content_entry(db: Session, key: str, fallback: Dict[str, Any]) -> Dict[str, Any]:
    try:
        entry = db.query(ContentEntry).filter(ContentEntry.key == key).first()
    except Exception as e:
        logger.warning(f"Content load failed: {key}: {e}")
        db.rollback()
        return copy.deepcopy(fallback)

    if entry is None:
        return copy.deepcopy(fallback)
    return merge_deep(fallback, entry.data)


def save_content_entry(
    db: Session,
    key: str,
    data: Dict[str, Any],
    admin_id: Optional[int] = None,
) -> ContentEntry:
    """Replace a section's data, keeping the previous version as a revision"""
    entry = db.query(ContentEntry).filter(ContentEntry.key == key).first()
    if entry is None:
        entry = ContentEntry(key=key, data=data, status="PUBLISHED")
        db.add(entry)
    else:
        db.add(ContentRevision(content_id=entry.id, data=entry.data, created_by_id=admin_id))
        entry.data = data
    db.commit()
    db.refresh(entry)
    return entry


def content_defaults_for(key: str) -> Optional[Dict[str, Any]]:
    return CONTENT_DEFAULTS.get(key)


def _with_session(session_factory: Callable[[], Session], loader: Callable[[Session], Any]) -> Any:
    db = session_factory()
    try:
        return loader(db)
    finally:
        db.close()


async def load_home_page(session_factory: Callable[[], Session]) -> HomePageContent:
    """Four independent reads, each on its own session, awaited together"""

    def read_content(db):
        return get_content_entry(db, "home", DEFAULT_HOME_CONTENT)

    def read_site_info(db):
        return SettingsRegistry(db).get_site_info().model_dump(by_alias=True, mode="json")

    def read_services(db):
        return [ServiceOut.model_validate(service) for service in get_active_services(db)]

    content, site_info, services, legal_pages = await asyncio.gather(
        asyncio.to_thread(_with_session, session_factory, read_content),
        asyncio.to_thread(_with_session, session_factory, read_site_info),
        asyncio.to_thread(_with_session, session_factory, read_services),
        asyncio.to_thread(_with_session, session_factory, get_legal_pages),
    )
    return HomePageContent(
        content=content,
        site_info=site_info,
        services=services,
        legal_pages=legal_pages,
    )
