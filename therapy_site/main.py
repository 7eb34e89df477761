import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from therapy_site.api import (
    admin_auth,
    admin_backups,
    admin_catalog,
    admin_media,
    admin_settings,
    booking,
    contact,
    content,
    cron,
    health,
)
from therapy_site.config.settings import config
from therapy_site.core.logging import log_error, setup_logging
from therapy_site.core.state import state
from therapy_site.i18n import i18n
from therapy_site.infra.database import init_db
from therapy_site.infra.redis import close_redis, init_redis
from therapy_site.utils.locale import get_locale

app = FastAPI(
    title=config.api.title,
    version=config.api.version,
    docs_url="/docs" if config.api.debug else None,
    redoc_url=None
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Field-level detail for malformed bodies and queries"""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query")),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": errors})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Anything a handler let through becomes a generic localized 500"""
    log_error(request, f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
    message = i18n.get("error.internal", get_locale(request.headers.get("accept-language")))
    return JSONResponse(status_code=500, content={"error": message})


# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(admin_auth.router, prefix="/api/admin", tags=["Admin Auth"])
app.include_router(admin_media.router, prefix="/api/admin", tags=["Admin Media"])
app.include_router(admin_backups.router, prefix="/api/admin", tags=["Admin Backups"])
app.include_router(admin_settings.router, prefix="/api/admin", tags=["Admin Settings"])
app.include_router(admin_catalog.router, prefix="/api/admin", tags=["Admin Catalog"])
app.include_router(cron.router, prefix="/api/cron", tags=["Cron"])
app.include_router(contact.router, prefix="/api", tags=["Contact"])
app.include_router(booking.router, prefix="/api/booking", tags=["Booking"])
app.include_router(content.router, prefix="/api", tags=["Content"])


@app.on_event("startup")
async def startup_event():
    setup_logging(config.logging)
    init_db()
    state.database_ready = True
    await init_redis()


@app.on_event("shutdown")
async def shutdown_event():
    await close_redis()
