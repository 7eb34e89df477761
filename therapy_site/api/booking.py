from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from therapy_site.api.deps import get_email_service, get_translator, get_whatsapp_service
from therapy_site.core.logging import log_error, log_info, log_warning
from therapy_site.infra.database import get_db
from therapy_site.infra.rate_limit import rate_limiter
from therapy_site.models.internal import BookingNotice
from therapy_site.models.request import BookingCreateRequest
from therapy_site.models.response import BookingSummary, SlotsResponse
from therapy_site.services.booking_service import BookingService, ServiceNotFoundError, SlotTakenError
from therapy_site.services.email_service import EmailService
from therapy_site.services.whatsapp_service import WhatsAppService

router = APIRouter()


def _book(bookings: BookingService, payload: BookingCreateRequest):
    booking = bookings.create_booking(payload)
    return booking, booking.service.title


@router.get("/available-slots", response_model=SlotsResponse)
def available_slots(
    day: date = Query(..., alias="date"),
    service_id: Optional[int] = Query(None, alias="serviceId"),
    db: Session = Depends(get_db),
    _=Depends(get_translator),
):
    slots = BookingService(db).available_slots(day, service_id)
    if slots is None:
        return SlotsResponse(slots=[], message=_("booking.closed_sunday"))
    return SlotsResponse(slots=slots)


@router.post("/create", dependencies=[Depends(rate_limiter)])
async def create_booking(
    request: Request,
    payload: BookingCreateRequest,
    db: Session = Depends(get_db),
    email: EmailService = Depends(get_email_service),
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
    _=Depends(get_translator),
):
    bookings = BookingService(db)
    try:
        booking, service_title = await run_in_threadpool(_book, bookings, payload)
    except ServiceNotFoundError:
        raise HTTPException(status_code=400, detail=_("error.service_not_found"))
    except SlotTakenError:
        raise HTTPException(status_code=409, detail=_("error.slot_taken"))
    except Exception as e:
        db.rollback()
        log_error(request, f"Booking error: {str(e)}")
        raise HTTPException(status_code=500, detail=_("error.booking_failed"))

    log_info(request, f"Booking {booking.id} created for {booking.date} {booking.start_time}")

    notice = BookingNotice(
        to=payload.email,
        name=payload.name,
        date=booking.date.isoformat(),
        time=booking.start_time,
        service=service_title,
    )
    result = await email.send_booking_confirmation(notice)
    if not result.success:
        log_warning(request, f"Booking confirmation not sent: {result.error}")

    try:
        await run_in_threadpool(bookings.schedule_reminders, booking)
    except Exception as e:
        db.rollback()
        log_error(request, f"Reminder scheduling error: {str(e)}")

    result = await whatsapp.send_whatsapp_notification(
        _(
            "whatsapp.new_booking",
            name=payload.name,
            service=service_title,
            date=notice.date,
            time=notice.time,
        )
    )
    if not result.success:
        log_warning(request, f"Booking WhatsApp not sent: {result.error}")

    return {
        "success": True,
        "booking": BookingSummary(
            id=booking.id,
            date=booking.date,
            time=booking.start_time,
            service=service_title,
        ),
    }
