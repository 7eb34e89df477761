from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from therapy_site.api.deps import get_translator
from therapy_site.core.auth import require_admin
from therapy_site.core.logging import log_error, log_info
from therapy_site.infra.database import get_db
from therapy_site.models.database import Booking, LegalPage, Service
from therapy_site.models.request import LegalPageUpdateRequest, ServiceRequest
from therapy_site.models.response import LegalPageOut, ServiceOut, SuccessResponse
from therapy_site.services import catalog_service
from therapy_site.services.legal_service import list_all_legal_pages

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/services")
def list_services(db: Session = Depends(get_db)):
    return {"services": [ServiceOut.model_validate(s) for s in catalog_service.list_services(db)]}


@router.post("/services")
def create_service(
    request: Request,
    payload: ServiceRequest,
    db: Session = Depends(get_db),
    _=Depends(get_translator),
):
    if catalog_service.slug_in_use(db, payload.slug):
        raise HTTPException(status_code=409, detail=_("error.slug_taken"))

    try:
        service = catalog_service.create_service(db, payload)
    except Exception as e:
        db.rollback()
        log_error(request, f"Service create error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.operation_failed"))

    log_info(request, f"Service created: {service.slug}")
    return {"service": ServiceOut.model_validate(service)}


@router.put("/services/{service_id}")
def update_service(
    request: Request,
    service_id: int,
    payload: ServiceRequest,
    db: Session = Depends(get_db),
    _=Depends(get_translator),
):
    service = db.get(Service, service_id)
    if not service:
        raise HTTPException(status_code=404, detail=_("error.service_not_found"))
    if catalog_service.slug_in_use(db, payload.slug, exclude_id=service_id):
        raise HTTPException(status_code=409, detail=_("error.slug_taken"))

    try:
        service = catalog_service.update_service(db, service, payload)
    except Exception as e:
        db.rollback()
        log_error(request, f"Service update error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.operation_failed"))

    return {"service": ServiceOut.model_validate(service)}


@router.delete("/services/{service_id}", response_model=SuccessResponse)
def delete_service(
    request: Request,
    service_id: int,
    db: Session = Depends(get_db),
    _=Depends(get_translator),
):
    """Services with bookings are deactivated instead of removed"""
    service = db.get(Service, service_id)
    if not service:
        raise HTTPException(status_code=404, detail=_("error.service_not_found"))

    try:
        if db.query(Booking.id).filter(Booking.service_id == service_id).first():
            service.is_active = False
        else:
            db.delete(service)
        db.commit()
    except Exception as e:
        db.rollback()
        log_error(request, f"Service delete error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.delete_failed"))

    log_info(request, f"Service removed: {service_id}")
    return SuccessResponse()


@router.get("/legal")
def list_legal_pages(db: Session = Depends(get_db)):
    return {"pages": [LegalPageOut.model_validate(p) for p in list_all_legal_pages(db)]}


@router.put("/legal/{page_id}")
def update_legal_page(
    request: Request,
    page_id: int,
    payload: LegalPageUpdateRequest,
    db: Session = Depends(get_db),
    _=Depends(get_translator),
):
    page = db.get(LegalPage, page_id)
    if not page:
        raise HTTPException(status_code=404, detail=_("error.not_found"))

    try:
        page.title = payload.title
        page.content = payload.content
        page.is_published = payload.is_published
        db.commit()
        db.refresh(page)
    except Exception as e:
        db.rollback()
        log_error(request, f"Legal page update error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.operation_failed"))

    return {"page": LegalPageOut.model_validate(page)}
