import html
import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from sqlalchemy.orm import Session

from therapy_site.config.settings import Config
from therapy_site.core.security import SecretError, decrypt_secret
from therapy_site.i18n import i18n
from therapy_site.models.internal import BookingNotice, NotificationResult
from therapy_site.models.settings import EmailSettings
from therapy_site.services.settings_service import SettingsRegistry
from therapy_site.utils.locale import mask_email

logger = logging.getLogger(__name__)

TEMPLATE_PATTERN = re.compile(r"{{\s*([\w.]+)\s*}}")


def render_template(template: str, data: Dict[str, str]) -> str:
    """Replace {{key}} placeholders; unknown keys are left untouched"""
    return TEMPLATE_PATTERN.sub(lambda match: data.get(match.group(1), match.group(0)), template)


@dataclass
class EmailClient:
    api_key: str
    sender: str
    reply_to: Optional[str]


class EmailService:
    """Transactional email through the Resend HTTP API"""

    def __init__(
        self,
        db: Session,
        cfg: Config,
        client: Optional[httpx.AsyncClient] = None,
        locale: Optional[str] = None,
    ):
        self.db = db
        self.config = cfg
        self._client = client
        self._ = i18n.translator(locale)

    def _settings(self) -> EmailSettings:
        return SettingsRegistry(self.db).get_email_settings()

    def _resolve_client(self, settings: EmailSettings) -> Optional[EmailClient]:
        api_key = self.config.email.resend_api_key
        if settings.use_resend_override and settings.resend_api_key_encrypted:
            try:
                api_key = decrypt_secret(settings.resend_api_key_encrypted, self.config.auth.encryption_secret)
            except SecretError as e:
                logger.warning(f"Resend override key could not be decrypted: {e}")

        if not api_key:
            logger.warning("Missing RESEND_API_KEY.")
            return None

        return EmailClient(
            api_key=api_key,
            sender=f"{settings.from_name} <{settings.from_email}>",
            reply_to=settings.reply_to or None,
        )

    async def _post(self, payload: dict, api_key: str) -> None:
        url = f"{self.config.email.api_url.rstrip('/')}/emails"
        headers = {"Authorization": f"Bearer {api_key}"}
        if self._client is not None:
            resp = await self._client.post(url, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.config.email.timeout_seconds) as client:
                resp = await client.post(url, json=payload, headers=headers)
        resp.raise_for_status()

    async def _send(
        self,
        to: str,
        subject: str,
        body_html: str,
        reply_to: Optional[str] = None,
        settings: Optional[EmailSettings] = None,
    ) -> NotificationResult:
        try:
            settings = settings or self._settings()
            client = self._resolve_client(settings)
            if not client:
                return NotificationResult(success=False, error=self._("email.missing_api_key"))

            payload = {
                "from": client.sender,
                "to": [to],
                "subject": subject,
                "html": body_html,
            }
            reply = client.reply_to or reply_to
            if reply:
                payload["reply_to"] = reply

            await self._post(payload, client.api_key)
            logger.info(f"Email sent to {mask_email(to)}: {subject}")
            return NotificationResult(success=True)
        except Exception as e:
            logger.error(f"Email sending error ({mask_email(to)}): {e}")
            return NotificationResult(success=False, error=str(e))

    async def _send_booking_template(
        self,
        notice: BookingNotice,
        enabled_flag: str,
        subject_field: str,
        body_field: str,
    ) -> NotificationResult:
        try:
            settings = self._settings()
        except Exception as e:
            logger.error(f"Email settings unavailable: {e}")
            return NotificationResult(success=False, error=str(e))

        if not getattr(settings, enabled_flag):
            return NotificationResult(success=False)

        data = {key: html.escape(value) for key, value in notice.template_data().items()}
        subject = render_template(getattr(settings.templates, subject_field), notice.template_data())
        body = render_template(getattr(settings.templates, body_field), data)
        return await self._send(notice.to, subject, f"<p>{body}</p>", settings=settings)

    async def send_booking_confirmation(self, notice: BookingNotice) -> NotificationResult:
        return await self._send_booking_template(
            notice, "enable_booking_confirmation", "confirmation_subject", "confirmation_body"
        )

    async def send_booking_reminder_email(self, notice: BookingNotice) -> NotificationResult:
        return await self._send_booking_template(
            notice, "enable_reminders", "reminder_subject", "reminder_body"
        )

    async def send_booking_thank_you_email(self, notice: BookingNotice) -> NotificationResult:
        return await self._send_booking_template(
            notice, "enable_thank_you", "thank_you_subject", "thank_you_body"
        )

    async def send_contact_form_notification(
        self,
        name: str,
        email: str,
        message: str,
        phone: Optional[str] = None,
    ) -> NotificationResult:
        _ = self._
        try:
            settings = self._settings()
        except Exception as e:
            logger.error(f"Email settings unavailable: {e}")
            return NotificationResult(success=False, error=str(e))

        body = (
            f"<h2>{_('email.contact_heading')}</h2>"
            f"<p><strong>{_('email.contact_name')}:</strong> {html.escape(name)}</p>"
            f"<p><strong>{_('email.contact_email')}:</strong> {html.escape(email)}</p>"
            f"<p><strong>{_('email.contact_phone')}:</strong> "
            f"{html.escape(phone) if phone else _('email.not_specified')}</p>"
            f"<p><strong>{_('email.contact_message')}:</strong></p>"
            f"<p>{html.escape(message)}</p>"
        )
        return await self._send(
            settings.notification_email,
            _("email.contact_subject", name=name),
            body,
            reply_to=email,
            settings=settings,
        )

    async def send_admin_password_reset_email(self, to: str, reset_url: str) -> NotificationResult:
        _ = self._
        url = html.escape(reset_url, quote=True)
        body = (
            f"<p>{_('email.reset_intro')}</p>"
            f'<p><a href="{url}">{url}</a></p>'
            f"<p>{_('email.reset_validity', minutes=self.config.auth.reset_token_ttl_minutes)}</p>"
        )
        return await self._send(to, _("email.reset_subject"), body)

    async def send_test_email(self, to: str, message: str) -> NotificationResult:
        return await self._send(to, self._("email.test_subject"), f"<p>{html.escape(message)}</p>")
