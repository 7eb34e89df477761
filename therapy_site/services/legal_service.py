import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from therapy_site.models.database import LegalPage
from therapy_site.models.response import LegalLink, LegalPageOut

logger = logging.getLogger(__name__)

DEFAULT_LEGAL_PAGES = [
    {
        "slug": "gizlilik",
        "title": "Gizlilik Politikası",
        "content": "Gizlilik politikası içeriği yakında güncellenecektir.",
        "is_published": True,
    },
    {
        "slug": "kullanim-sartlari",
        "title": "Kullanım Şartları",
        "content": "Kullanım şartları içeriği yakında güncellenecektir.",
        "is_published": True,
    },
    {
        "slug": "kvkk",
        "title": "KVKK Aydınlatma Metni",
        "content": "KVKK içeriği yakında güncellenecektir.",
        "is_published": True,
    },
    {
        "slug": "cerez-politikasi",
        "title": "Çerez Politikası",
        "content": "Çerez politikası içeriği yakında güncellenecektir.",
        "is_published": True,
    },
]


def ensure_legal_pages(db: Session) -> None:
    """Seed default legal pages that do not exist yet"""
    existing = {slug for (slug,) in db.query(LegalPage.slug).all()}
    missing = [page for page in DEFAULT_LEGAL_PAGES if page["slug"] not in existing]
    if not missing:
        return
    db.add_all(LegalPage(**page) for page in missing)
    db.commit()


def get_legal_pages(db: Session) -> List[LegalLink]:
    """Published pages for footer links; defaults when the store is unavailable"""
    try:
        ensure_legal_pages(db)
        pages = (
            db.query(LegalPage)
            .filter(LegalPage.is_published.is_(True))
            .order_by(LegalPage.title.asc())
            .all()
        )
        return [LegalLink.model_validate(page) for page in pages]
    except Exception as e:
        logger.warning(f"Legal pages unavailable: {e}")
        db.rollback()
        return [LegalLink(slug=page["slug"], title=page["title"]) for page in DEFAULT_LEGAL_PAGES]


def get_legal_page_by_slug(db: Session, slug: str) -> Optional[LegalPageOut]:
    try:
        ensure_legal_pages(db)
        page = db.query(LegalPage).filter(LegalPage.slug == slug).first()
        return LegalPageOut.model_validate(page) if page else None
    except Exception as e:
        logger.warning(f"Legal page unavailable: {e}")
        db.rollback()
        default = next((page for page in DEFAULT_LEGAL_PAGES if page["slug"] == slug), None)
        return LegalPageOut(**default) if default else None


def list_all_legal_pages(db: Session) -> List[LegalPage]:
    ensure_legal_pages(db)
    return db.query(LegalPage).order_by(LegalPage.title.asc()).all()
