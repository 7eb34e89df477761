from .internal import BookingNotice, NotificationResult
from .request import ContactRequest, LoginRequest, SetupRequest
from .response import SuccessResponse

__all__ = ["BookingNotice", "ContactRequest", "LoginRequest", "NotificationResult", "SetupRequest", "SuccessResponse"]
