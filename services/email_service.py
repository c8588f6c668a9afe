"""
Envío de emails a clientes y administradores (SMTP).
Cuerpos HTML renderizados con Jinja2. Si no hay EMAIL_HOST configurado, los envíos se loguean y se omiten.
"""

import smtplib
from functools import wraps
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import List, Optional, Tuple

from jinja2 import Environment, DictLoader, select_autoescape

import config
from services.errors import NotificationError
from utils.logging_utils import get_logger, log_event
from utils.money import as_float

logger = get_logger(__name__)


def notification_guard(func):
    """Cualquier falla al armar o enviar un email sale como NotificationError"""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except NotificationError:
            raise
        except Exception as e:
            raise NotificationError(f"Error preparando email ({func.__name__}): {e}") from e

    return wrapper


STATUS_MESSAGES = {
    "pending": "Your reservation is pending confirmation",
    "confirmed": "Your reservation has been confirmed",
    "checked_in": "Check-in completed. Enjoy your stay!",
    "checked_out": "Check-out completed. Thank you for your visit!",
}

_FOOTER = """
<p>Thank you for choosing {{ brand }}.</p>
<p>Best regards,<br>{{ brand }} Team</p>
"""

_TEMPLATES = {
    "confirmation.html": """
<h1>Reservation Confirmed</h1>
<p>Dear {{ r.client_name }},</p>
<p>Your reservation has been confirmed:</p>
<ul>
  <li>Check-in: {{ r.check_in_date.strftime('%m/%d/%Y') }}</li>
  <li>Check-out: {{ r.check_out_date.strftime('%m/%d/%Y') }}</li>
  <li>Nights: {{ r.nights }}</li>
  <li>Total: ${{ '%.2f' % total }}</li>
</ul>
""" + _FOOTER,
    "payment.html": """
<h1>{{ 'Full' if is_complete else 'Partial' }} Payment Received</h1>
<p>Dear {{ r.client_name }},</p>
<p>We have received your payment of <strong>${{ '%.2f' % amount }}</strong> for reservation #{{ r.id }}.</p>
<p>Current payment status: <strong>{{ 'COMPLETE' if is_complete else 'PARTIAL' }}</strong></p>
{% if not is_complete %}<p>Remaining balance: <strong>${{ '%.2f' % due }}</strong></p>{% endif %}
<p>Reservation details:</p>
<ul>
  <li>Check-in: {{ r.check_in_date.strftime('%m/%d/%Y') }}</li>
  <li>Check-out: {{ r.check_out_date.strftime('%m/%d/%Y') }}</li>
  <li>Total: ${{ '%.2f' % total }}</li>
</ul>
""" + _FOOTER,
    "status_change.html": """
<h1>Reservation Status Update</h1>
<p>Dear {{ r.client_name }},</p>
<p>The status of your reservation #{{ r.id }} has changed from <strong>{{ previous_status }}</strong> to <strong>{{ r.status }}</strong>.</p>
<p>{{ status_message }}</p>
<p>Reservation details:</p>
<ul>
  <li>Check-in: {{ r.check_in_date.strftime('%m/%d/%Y') }}</li>
  <li>Check-out: {{ r.check_out_date.strftime('%m/%d/%Y') }}</li>
  <li>Total: ${{ '%.2f' % total }}</li>
  <li>Paid: ${{ '%.2f' % paid }}</li>
  {% if due > 0 %}<li>Balance due: ${{ '%.2f' % due }}</li>{% endif %}
</ul>
""" + _FOOTER,
    "receipt.html": """
<h1>Reservation Receipt</h1>
<p>Dear {{ r.client_name }},</p>
<p>Please find attached the receipt for your reservation.</p>
""" + _FOOTER,
    "monthly_summary.html": """
<h1>Monthly Summary {{ '%02d' % month }}/{{ year }}</h1>
<p>Attached you will find the reservations and payments summary for the period.</p>
""" + _FOOTER,
}

_env = Environment(loader=DictLoader(_TEMPLATES), autoescape=select_autoescape(["html"]))


class EmailService:
    """
    Notificador por email.

    Cualquier objeto con send_payment_notification / send_status_change_notification
    puede reemplazarlo en los servicios del núcleo (los tests usan un fake).
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        from_name: Optional[str] = None,
    ):
        self.host = config.EMAIL_HOST if host is None else host
        self.port = config.EMAIL_PORT if port is None else port
        self.username = config.EMAIL_USER if username is None else username
        self.password = config.EMAIL_PASSWORD if password is None else password
        self.use_tls = config.EMAIL_USE_TLS if use_tls is None else use_tls
        self.from_name = config.EMAIL_FROM_NAME if from_name is None else from_name

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    # ========== RENDER ==========

    def _render(self, template_name: str, **context) -> str:
        return _env.get_template(template_name).render(brand=self.from_name, **context)

    def render_payment_notification(self, reservation, amount, is_complete: bool) -> Tuple[str, str]:
        kind = "Full" if is_complete else "Partial"
        subject = f"{kind} Payment Received - Reservation #{reservation.id}"
        html = self._render(
            "payment.html",
            r=reservation,
            amount=as_float(amount),
            is_complete=is_complete,
            due=as_float(reservation.amount_due),
            total=as_float(reservation.total_amount),
        )
        return subject, html

    def render_status_change(self, reservation, previous_status: str) -> Tuple[str, str]:
        status_message = STATUS_MESSAGES.get(reservation.status, reservation.status)
        subject = f"Reservation Update #{reservation.id} - {status_message}"
        html = self._render(
            "status_change.html",
            r=reservation,
            previous_status=previous_status,
            status_message=status_message,
            total=as_float(reservation.total_amount),
            paid=as_float(reservation.amount_paid),
            due=as_float(reservation.amount_due),
        )
        return subject, html

    # ========== ENVÍOS ==========

    @notification_guard
    def send_confirmation_email(self, reservation) -> bool:
        subject = f"Reservation Confirmation #{reservation.id}"
        html = self._render("confirmation.html", r=reservation, total=as_float(reservation.total_amount))
        return self._send(reservation.client_email, subject, html)

    @notification_guard
    def send_payment_notification(self, reservation, amount, is_complete: bool) -> bool:
        subject, html = self.render_payment_notification(reservation, amount, is_complete)
        return self._send(reservation.client_email, subject, html)

    @notification_guard
    def send_status_change_notification(self, reservation, previous_status: str) -> bool:
        subject, html = self.render_status_change(reservation, previous_status)
        return self._send(reservation.client_email, subject, html)

    @notification_guard
    def send_reservation_pdf(self, reservation, pdf_path: str) -> bool:
        subject = f"Reservation Receipt #{reservation.id}"
        html = self._render("receipt.html", r=reservation)
        try:
            content = Path(pdf_path).read_bytes()
        except OSError as e:
            raise NotificationError(f"No se pudo leer el PDF {pdf_path}: {e}") from e
        attachment = (f"reservation-{reservation.id}.pdf", content)
        return self._send(reservation.client_email, subject, html, attachments=[attachment])

    @notification_guard
    def send_monthly_summary_email(self, to: str, pdf_bytes: bytes, month: int, year: int) -> bool:
        subject = f"Monthly Summary {month:02d}/{year}"
        html = self._render("monthly_summary.html", month=month, year=year)
        attachment = (f"summary-{year}-{month:02d}.pdf", pdf_bytes)
        return self._send(to, subject, html, attachments=[attachment])

    def _build_message(self, to: str, subject: str, html: str, attachments: List[Tuple[str, bytes]]) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["Subject"] = subject
        msg["From"] = f'"{self.from_name}" <{self.username}>'
        msg["To"] = to
        msg.attach(MIMEText(html, "html", "utf-8"))
        for filename, content in attachments:
            part = MIMEApplication(content, _subtype="pdf")
            part.add_header("Content-Disposition", "attachment", filename=filename)
            msg.attach(part)
        return msg

    def _send(self, to: Optional[str], subject: str, html: str, attachments: Optional[List[Tuple[str, bytes]]] = None) -> bool:
        """
        Envía el email.

        Returns:
            True si se envió, False si se omitió (email deshabilitado o sin destinatario)

        Raises:
            NotificationError: si el servidor SMTP falla
        """
        if not to:
            logger.warning("Email '%s' omitido: destinatario vacío", subject)
            return False
        if not self.enabled:
            logger.warning("Email '%s' a %s omitido: SMTP no configurado", subject, to)
            return False

        try:
            msg = self._build_message(to, subject, html, attachments or [])
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(self.username, [to], msg.as_string())
        except (smtplib.SMTPException, OSError, ValueError) as e:
            raise NotificationError(f"Error enviando email '{subject}' a {to}: {e}") from e

        log_event("notification", "system", "Email enviado", f"to={to}, subject={subject}")
        return True
