import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from therapy_site.api.deps import (
    get_assessment_analyzer,
    get_email_service,
    get_translator,
    get_whatsapp_service,
)
from therapy_site.core.logging import log_error, log_info, log_warning
from therapy_site.infra.database import get_db
from therapy_site.infra.rate_limit import rate_limiter
from therapy_site.models.database import Assessment, ContactSubmission
from therapy_site.models.request import AssessmentAnalyzeRequest, AssessmentCreateRequest, ContactRequest
from therapy_site.models.response import AssessmentAnalysisResponse, SuccessResponse
from therapy_site.services.assessment_service import AnalysisNotConfigured, AssessmentAnalyzer, save_analysis
from therapy_site.services.email_service import EmailService
from therapy_site.services.whatsapp_service import WhatsAppService
from therapy_site.utils.locale import mask_email

router = APIRouter()


def _save_submission(db: Session, payload: ContactRequest) -> None:
    db.add(ContactSubmission(**payload.model_dump()))
    db.commit()


@router.post("/contact", response_model=SuccessResponse, dependencies=[Depends(rate_limiter)])
async def submit_contact(
    request: Request,
    payload: ContactRequest,
    db: Session = Depends(get_db),
    email: EmailService = Depends(get_email_service),
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
    _=Depends(get_translator),
):
    """Store the message, then notify; notification failures never fail the request"""
    try:
        await run_in_threadpool(_save_submission, db, payload)
    except Exception as e:
        db.rollback()
        log_error(request, f"Contact save error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.contact_failed"))

    log_info(request, f"Contact submission from {mask_email(payload.email)}")

    result = await email.send_contact_form_notification(
        payload.name, payload.email, payload.message, phone=payload.phone
    )
    if not result.success:
        log_warning(request, f"Contact email not sent: {result.error}")

    result = await whatsapp.send_whatsapp_notification(
        _("whatsapp.new_contact", name=payload.name, email=payload.email, message=payload.message)
    )
    if not result.success:
        log_warning(request, f"Contact WhatsApp not sent: {result.error}")

    return SuccessResponse()


@router.post("/assessment/create", response_model=SuccessResponse)
def create_assessment(
    request: Request,
    payload: AssessmentCreateRequest,
    db: Session = Depends(get_db),
    _=Depends(get_translator),
):
    """Upsert the in-progress assessment of one browser session"""
    try:
        assessment = db.query(Assessment).filter(Assessment.session_id == payload.session_id).first()
        if assessment is None:
            db.add(Assessment(session_id=payload.session_id, answers=payload.answers, status="IN_PROGRESS"))
        else:
            assessment.answers = payload.answers
            assessment.status = "IN_PROGRESS"
        db.commit()
    except Exception as e:
        db.rollback()
        log_error(request, f"Assessment save error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.assessment_failed"))

    return SuccessResponse()


def _find_assessment(db: Session, session_id: str):
    return db.query(Assessment).filter(Assessment.session_id == session_id).first()


@router.post(
    "/assessment/analyze",
    response_model=AssessmentAnalysisResponse,
    dependencies=[Depends(rate_limiter)],
)
async def analyze_assessment(
    request: Request,
    payload: AssessmentAnalyzeRequest,
    db: Session = Depends(get_db),
    analyzer: AssessmentAnalyzer = Depends(get_assessment_analyzer),
    _=Depends(get_translator),
):
    """Score the answers with the language model and complete the assessment"""
    assessment = await run_in_threadpool(_find_assessment, db, payload.session_id)
    if assessment is None:
        raise HTTPException(status_code=404, detail=_("error.assessment_not_found"))

    try:
        analysis = await analyzer.analyze(payload.answers)
    except AnalysisNotConfigured:
        log_error(request, "Assessment analysis requested but no AI provider is configured")
        raise HTTPException(status_code=500, detail=_("error.analysis_not_configured"))
    except (httpx.TimeoutException, httpx.NetworkError) as e:
        log_error(request, f"Assessment analysis timeout: {e!r}")
        raise HTTPException(status_code=500, detail=_("error.analysis_timeout"))
    except httpx.HTTPStatusError as e:
        log_error(request, f"Assessment analysis provider error: {e}")
        key = "error.analysis_rate_limited" if e.response.status_code == 429 else "error.analysis_failed"
        raise HTTPException(status_code=500, detail=_(key))
    except Exception as e:
        log_error(request, f"Assessment analysis error: {e!r}")
        raise HTTPException(status_code=500, detail=_("error.analysis_failed"))

    try:
        await run_in_threadpool(save_analysis, db, assessment, analysis)
    except Exception as e:
        db.rollback()
        log_error(request, f"Assessment analysis save error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.analysis_failed"))

    log_info(request, f"Assessment {assessment.id} analyzed, urgency {analysis.urgency}")
    return AssessmentAnalysisResponse(analysis=analysis)
