from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from therapy_site.api.deps import get_translator
from therapy_site.infra.database import get_db, get_session_factory
from therapy_site.models.response import HomePageContent, LegalPageOut, ServiceOption
from therapy_site.services.catalog_service import get_service_options
from therapy_site.services.content_service import load_home_page
from therapy_site.services.legal_service import get_legal_page_by_slug, get_legal_pages

router = APIRouter()


@router.get("/services")
def list_service_options(db: Session = Depends(get_db)):
    return {"services": [ServiceOption.model_validate(s) for s in get_service_options(db)]}


@router.get("/legal")
def list_legal_links(db: Session = Depends(get_db)):
    return {"pages": get_legal_pages(db)}


@router.get("/legal/{slug}", response_model=LegalPageOut)
def read_legal_page(slug: str, db: Session = Depends(get_db), _=Depends(get_translator)):
    page = get_legal_page_by_slug(db, slug)
    if page is None or not page.is_published:
        raise HTTPException(status_code=404, detail=_("error.not_found"))
    return page


@router.get("/home", response_model=HomePageContent)
async def read_home_page(session_factory=Depends(get_session_factory)):
    return await load_home_page(session_factory)
