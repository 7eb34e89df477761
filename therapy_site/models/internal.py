from typing import Optional

from pydantic import BaseModel


class NotificationResult(BaseModel):
    """Outcome of one outbound notification; senders never raise"""
    success: bool
    error: Optional[str] = None


class BookingNotice(BaseModel):
    """Data rendered into booking confirmation / reminder templates"""
    to: str
    name: str
    date: str
    time: str
    service: str

    def template_data(self) -> dict:
        return {"name": self.name, "date": self.date, "time": self.time, "service": self.service}
