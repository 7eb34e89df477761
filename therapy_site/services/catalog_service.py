from typing import List, Optional

from sqlalchemy.orm import Session

from therapy_site.models.database import Service
from therapy_site.models.request import ServiceRequest


def get_active_services(db: Session) -> List[Service]:
    return (
        db.query(Service)
        .filter(Service.is_active.is_(True))
        .order_by(Service.order.asc(), Service.title.asc())
        .all()
    )


def get_service_options(db: Session) -> List[Service]:
    return get_active_services(db)


def list_services(db: Session) -> List[Service]:
    return db.query(Service).order_by(Service.order.asc(), Service.title.asc()).all()


def slug_in_use(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Service.id).filter(Service.slug == slug)
    if exclude_id is not None:
        query = query.filter(Service.id != exclude_id)
    return query.first() is not None


def create_service(db: Session, payload: ServiceRequest) -> Service:
    service = Service(**payload.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def update_service(db: Session, service: Service, payload: ServiceRequest) -> Service:
    for field, value in payload.model_dump().items():
        setattr(service, field, value)
    db.commit()
    db.refresh(service)
    return service
