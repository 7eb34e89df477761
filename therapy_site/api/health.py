from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import text
from sqlalchemy.orm import Session

from therapy_site.api.deps import get_translator
from therapy_site.core.state import state
from therapy_site.infra.database import get_db

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db), _=Depends(get_translator)):
    """Lightweight health check"""
    try:
        await run_in_threadpool(db.execute, text("SELECT 1"))
        database_status = _("health.connected")
    except Exception:
        database_status = _("health.disconnected")

    redis_status = _("health.disabled")
    if state.redis:
        try:
            await state.redis.ping()
            redis_status = _("health.connected")
        except Exception:
            redis_status = _("health.disconnected")

    return {
        "status": _("health.status"),
        "database": database_status,
        "redis": redis_status,
    }
