import logging
from typing import Optional

import httpx

from therapy_site.config.settings import WhatsAppConfig
from therapy_site.i18n import i18n
from therapy_site.models.internal import NotificationResult

logger = logging.getLogger(__name__)


class WhatsAppService:
    """WhatsApp messages through the Twilio Messages API"""

    def __init__(
        self,
        whatsapp_config: WhatsAppConfig,
        client: Optional[httpx.AsyncClient] = None,
        locale: Optional[str] = None,
    ):
        self.config = whatsapp_config
        self._client = client
        self._ = i18n.translator(locale)

    async def _post(self, url: str, data: dict) -> httpx.Response:
        auth = (self.config.account_sid, self.config.auth_token)
        if self._client is not None:
            return await self._client.post(url, data=data, auth=auth)
        async with httpx.AsyncClient(timeout=10.0) as client:
            return await client.post(url, data=data, auth=auth)

    async def send_whatsapp_notification(self, message: str, to: Optional[str] = None) -> NotificationResult:
        """Send one message; defaults to the admin number when no recipient is given"""
        if not self.config.configured:
            return NotificationResult(success=False, error=self._("whatsapp.missing_credentials"))

        recipient = to or self.config.admin_number
        if not recipient:
            return NotificationResult(success=False, error=self._("whatsapp.missing_recipient"))

        url = (
            f"{self.config.api_url.rstrip('/')}/2010-04-01/Accounts/"
            f"{self.config.account_sid}/Messages.json"
        )
        try:
            resp = await self._post(
                url,
                {
                    "Body": message,
                    "From": f"whatsapp:{self.config.from_number}",
                    "To": f"whatsapp:{recipient}",
                },
            )
            resp.raise_for_status()
            return NotificationResult(success=True)
        except Exception as e:
            logger.error(f"WhatsApp error: {e}")
            return NotificationResult(success=False, error=str(e))

    async def send_booking_reminder(
        self,
        phone: str,
        name: str,
        date: str,
        time: str,
        service: str,
        address: str = "",
        site_name: str = "",
    ) -> NotificationResult:
        message = self._(
            "whatsapp.booking_reminder",
            name=name,
            date=date,
            time=time,
            service=service,
            address=address,
            site_name=site_name,
        )
        return await self.send_whatsapp_notification(message, to=phone)
