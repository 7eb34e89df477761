import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from therapy_site.models.database import Booking, BookingReminder, Client, Service
from therapy_site.models.internal import BookingNotice
from therapy_site.models.request import BookingCreateRequest
from therapy_site.models.response import TimeSlot
from therapy_site.services.email_service import EmailService
from therapy_site.services.settings_service import SettingsRegistry

logger = logging.getLogger(__name__)

WORK_HOURS = {
    "weekday": (9, 18),
    "saturday": (9, 14),
}
ACTIVE_STATUSES = ("PENDING", "CONFIRMED")
DEFAULT_DURATION_MINUTES = 60
REMINDER_BATCH_SIZE = 50


class SlotTakenError(Exception):
    """Requested start time overlaps an active booking"""


class ServiceNotFoundError(Exception):
    pass


def to_minutes(value: str) -> int:
    hour, minute = (int(part) for part in value.split(":"))
    return hour * 60 + minute


def to_time_string(total_minutes: int) -> str:
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def working_hours(day: date):
    """(start_hour, end_hour) or None on Sundays"""
    weekday = day.weekday()
    if weekday == 6:
        return None
    return WORK_HOURS["saturday"] if weekday == 5 else WORK_HOURS["weekday"]


def build_datetime(day: date, time_value: str, offset: str) -> datetime:
    """Local appointment time (with a +HH:MM offset) as naive UTC"""
    local = datetime.fromisoformat(f"{day.isoformat()}T{time_value}:00{offset}")
    return local.astimezone(timezone.utc).replace(tzinfo=None)


class BookingService:
    def __init__(self, db: Session):
        self.db = db
        self.settings = SettingsRegistry(db)

    def _active_bookings_on(self, day: date) -> List[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.date == day, Booking.status.in_(ACTIVE_STATUSES))
            .all()
        )

    def available_slots(self, day: date, service_id: Optional[int] = None) -> Optional[List[TimeSlot]]:
        """Hourly slots inside working hours that do not overlap active bookings; None when closed"""
        hours = working_hours(day)
        if hours is None:
            return None
        start_hour, end_hour = hours

        service = self.db.get(Service, service_id) if service_id else None
        duration = service.duration if service and service.duration else DEFAULT_DURATION_MINUTES

        taken = [(to_minutes(b.start_time), to_minutes(b.end_time)) for b in self._active_bookings_on(day)]

        slots = []
        for hour in range(start_hour, end_hour):
            slot_start = hour * 60
            slot_end = slot_start + duration
            if slot_end > end_hour * 60:
                continue
            if any(slot_start < busy_end and slot_end > busy_start for busy_start, busy_end in taken):
                continue
            slots.append(
                TimeSlot(
                    time=to_time_string(slot_start),
                    display_time=f"{to_time_string(slot_start)} - {to_time_string(slot_end)}",
                )
            )
        return slots

    def create_booking(self, payload: BookingCreateRequest) -> Booking:
        service = self.db.get(Service, payload.service_id)
        if not service:
            raise ServiceNotFoundError(payload.service_id)

        taken = (
            self.db.query(Booking.id)
            .filter(
                Booking.date == payload.date,
                Booking.start_time == payload.start_time,
                Booking.status.in_(ACTIVE_STATUSES),
            )
            .first()
        )
        if taken:
            raise SlotTakenError(payload.start_time)

        client = self.db.query(Client).filter(Client.email == payload.email).first()
        if not client:
            client = Client(email=payload.email, name=payload.name, phone=payload.phone)
            self.db.add(client)
            self.db.flush()

        booking = Booking(
            client_id=client.id,
            service_id=service.id,
            date=payload.date,
            start_time=payload.start_time,
            end_time=to_time_string(to_minutes(payload.start_time) + service.duration),
            status="PENDING",
            child_name=payload.child_name,
            child_age=payload.child_age,
            notes=payload.notes,
        )
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def schedule_reminders(self, booking: Booking, now: Optional[datetime] = None) -> List[BookingReminder]:
        """Queue reminder and thank-you emails that still lie in the future"""
        email_settings = self.settings.get_email_settings()
        site_info = self.settings.get_site_info()
        now = now or datetime.utcnow()

        start = build_datetime(booking.date, booking.start_time, site_info.timezone_offset)
        end = build_datetime(booking.date, booking.end_time, site_info.timezone_offset)

        reminders = []
        if email_settings.enable_reminders:
            for offset in email_settings.reminder_offsets_minutes:
                send_at = start - timedelta(minutes=offset)
                if send_at > now:
                    reminders.append(
                        BookingReminder(
                            booking_id=booking.id,
                            reminder_type="REMINDER",
                            offset_minutes=offset,
                            send_at=send_at,
                        )
                    )

        if email_settings.enable_thank_you:
            send_at = end + timedelta(minutes=email_settings.thank_you_offset_minutes)
            if send_at > now:
                reminders.append(
                    BookingReminder(
                        booking_id=booking.id,
                        reminder_type="THANK_YOU",
                        offset_minutes=email_settings.thank_you_offset_minutes,
                        send_at=send_at,
                    )
                )

        if reminders:
            self.db.add_all(reminders)
            self.db.commit()
        return reminders

    async def process_due_reminders(self, email: EmailService, now: Optional[datetime] = None) -> int:
        """Send up to one batch of due reminders; returns how many were processed"""
        now = now or datetime.utcnow()
        reminders = (
            self.db.query(BookingReminder)
            .filter(BookingReminder.status == "PENDING", BookingReminder.send_at <= now)
            .order_by(BookingReminder.send_at.asc())
            .limit(REMINDER_BATCH_SIZE)
            .all()
        )

        for reminder in reminders:
            booking = reminder.booking
            client = booking.client if booking else None
            if not client or not client.email:
                reminder.status = "FAILED"
                reminder.error_message = "Missing client email"
                self.db.commit()
                continue

            notice = BookingNotice(
                to=client.email,
                name=client.name or "Danışan",
                date=booking.date.isoformat(),
                time=booking.start_time,
                service=booking.service.title if booking.service else "",
            )
            try:
                if reminder.reminder_type == "THANK_YOU":
                    result = await email.send_booking_thank_you_email(notice)
                else:
                    result = await email.send_booking_reminder_email(notice)
                reminder.status = "SENT" if result.success else "SKIPPED"
                reminder.sent_at = datetime.utcnow() if result.success else None
            except Exception as e:
                logger.error(f"Reminder {reminder.id} failed: {e}")
                reminder.status = "FAILED"
                reminder.error_message = str(e) or "Send failed"
            self.db.commit()

        return len(reminders)
