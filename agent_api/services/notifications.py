"""Booking confirmation channels.

One Notifier per delivery channel; NOTIFICATION_CHANNEL picks which one the
booking route uses. A notifier raises NotificationError when delivery
fails. The booking itself is already stored by then, so callers report the
failure instead of undoing anything.
"""

import asyncio
import logging
import smtplib
import ssl
import time
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from pathlib import Path
from typing import Any

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from agent_api.core.config import Settings
from agent_api.core.enums import NotificationChannel
from agent_api.core.logging import elapsed_ms, log_external_call
from agent_api.models.booking import BookingConfirmation

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


class NotificationError(Exception):
    """A booking confirmation could not be delivered."""


class Notifier(ABC):
    channel: NotificationChannel

    @abstractmethod
    async def send_booking_confirmation(self, booking: BookingConfirmation) -> None:
        """Deliver a confirmation for a stored booking."""

    async def close(self) -> None:
        return None


class NoOpNotifier(Notifier):
    channel = NotificationChannel.NONE

    async def send_booking_confirmation(self, booking: BookingConfirmation) -> None:
        logger.debug(f"Notifications disabled; not announcing booking for {booking.name}")


# -----------------------------------------------------------------------------
# Email
# -----------------------------------------------------------------------------


def plain_text_body(booking: BookingConfirmation, business_name: str = "") -> str:
    lines = [
        "Nueva cita agendada",
        "",
        f"Nombre: {booking.name}",
        f"Fecha: {booking.date}",
        f"Hora: {booking.time}",
        f"Servicio: {booking.service}",
    ]
    if booking.phone:
        lines.append(f"Telefono: {booking.phone}")
    if booking.notes:
        lines.append(f"Notas: {booking.notes}")
    for key, value in (booking.extra or {}).items():
        lines.append(f"{key.capitalize()}: {value}")
    if business_name:
        lines += ["", business_name]
    return "\n".join(lines)


class SmtpNotifier(Notifier):
    """Plain-text email over SMTP (STARTTLS, or implicit TLS on port 465)."""

    channel = NotificationChannel.SMTP

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        to_address: str,
        use_tls: bool = True,
        business_name: str = "",
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.to_address = to_address
        self.use_tls = use_tls
        self.business_name = business_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpNotifier":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            from_address=settings.email_from,
            to_address=settings.email_to,
            use_tls=settings.smtp_use_tls,
            business_name=settings.business_name,
        )

    def subject(self, booking: BookingConfirmation) -> str:
        return f"Cita agendada: {booking.name} - {booking.date} {booking.time}"

    def build_message(self, booking: BookingConfirmation) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = self.subject(booking)
        msg["From"] = self.from_address
        msg["To"] = self.to_address
        msg["Date"] = formatdate(localtime=True)
        msg.attach(MIMEText(plain_text_body(booking, self.business_name), "plain", "utf-8"))
        return msg

    def _deliver(self, msg: MIMEMultipart) -> None:
        context = ssl.create_default_context()
        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=30)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=30)
        try:
            if self.port != 465 and self.use_tls:
                server.starttls(context=context)
            if self.username:
                server.login(self.username, self.password.replace(" ", ""))
            server.sendmail(self.from_address, [self.to_address], msg.as_string())
        finally:
            server.quit()

    async def send_booking_confirmation(self, booking: BookingConfirmation) -> None:
        msg = self.build_message(booking)
        start = time.perf_counter()
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            log_external_call("smtp", "send", False, elapsed_ms(start))
            raise NotificationError(f"SMTP delivery to {self.to_address} failed: {e}") from e
        log_external_call("smtp", "send", True, elapsed_ms(start))


class TemplatedEmailNotifier(SmtpNotifier):
    """HTML email rendered from a Jinja2 template, with a text alternative."""

    channel = NotificationChannel.SMTP_TEMPLATE

    def __init__(self, *args: Any, template_name: str = "booking_confirmation.html", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html"]),
        )
        self.template_name = template_name

    def render_html(self, booking: BookingConfirmation) -> str:
        template = self.env.get_template(self.template_name)
        return template.render(booking=booking, business_name=self.business_name)

    def build_message(self, booking: BookingConfirmation) -> MIMEMultipart:
        msg = super().build_message(booking)
        msg.attach(MIMEText(self.render_html(booking), "html", "utf-8"))
        return msg


# -----------------------------------------------------------------------------
# WhatsApp
# -----------------------------------------------------------------------------


class WhatsAppTemplateNotifier(Notifier):
    """WhatsApp Cloud API template message.

    The approved template is expected to take four body parameters in this
    order: name, date, time, service.
    """

    channel = NotificationChannel.WHATSAPP

    def __init__(
        self,
        base_url: str,
        token: str,
        phone_number_id: str,
        template_name: str,
        language: str,
        to: str,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = f"{base_url.rstrip('/')}/{phone_number_id}/messages"
        self.token = token
        self.template_name = template_name
        self.language = language
        self.to = to
        self.client = client or httpx.AsyncClient(timeout=15.0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhatsAppTemplateNotifier":
        return cls(
            base_url=settings.whatsapp_api_base_url,
            token=settings.whatsapp_token,
            phone_number_id=settings.whatsapp_phone_number_id,
            template_name=settings.whatsapp_template_name,
            language=settings.whatsapp_language,
            to=settings.whatsapp_notify_to,
        )

    def build_payload(self, booking: BookingConfirmation) -> dict[str, Any]:
        parameters = [
            {"type": "text", "text": value}
            for value in (booking.name, booking.date, booking.time, booking.service)
        ]
        return {
            "messaging_product": "whatsapp",
            "to": self.to,
            "type": "template",
            "template": {
                "name": self.template_name,
                "language": {"code": self.language},
                "components": [{"type": "body", "parameters": parameters}],
            },
        }

    async def send_booking_confirmation(self, booking: BookingConfirmation) -> None:
        start = time.perf_counter()
        try:
            resp = await self.client.post(
                self.url,
                json=self.build_payload(booking),
                headers={"Authorization": f"Bearer {self.token}"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            log_external_call("whatsapp", "send_template", False, elapsed_ms(start))
            raise NotificationError(f"WhatsApp template delivery failed: {e}") from e
        log_external_call("whatsapp", "send_template", True, elapsed_ms(start))

    async def close(self) -> None:
        await self.client.aclose()


def build_notifier(settings: Settings) -> Notifier:
    """Create the notifier selected by NOTIFICATION_CHANNEL."""
    channel = settings.notification_channel
    if channel == NotificationChannel.SMTP:
        return SmtpNotifier.from_settings(settings)
    if channel == NotificationChannel.SMTP_TEMPLATE:
        return TemplatedEmailNotifier.from_settings(settings)
    if channel == NotificationChannel.WHATSAPP:
        return WhatsAppTemplateNotifier.from_settings(settings)
    return NoOpNotifier()
