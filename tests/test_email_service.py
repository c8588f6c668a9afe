"""
Tests del servicio de emails (SMTP mockeado)
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import smtplib
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, Mock, patch

from services.email_service import EmailService
from services.errors import NotificationError


def _reservation(**overrides):
    reservation = Mock()
    reservation.id = 42
    reservation.client_name = "Jane Doe"
    reservation.client_email = "jane@example.com"
    reservation.check_in_date = date(2025, 3, 10)
    reservation.check_out_date = date(2025, 3, 15)
    reservation.nights = 5
    reservation.total_amount = Decimal("1000")
    reservation.amount_paid = Decimal("300")
    reservation.amount_due = Decimal("700")
    reservation.status = "checked_in"
    for key, value in overrides.items():
        setattr(reservation, key, value)
    return reservation


def _service(**overrides):
    settings = {
        "host": "smtp.example.com",
        "port": 587,
        "username": "bookings@example.com",
        "password": "secret",
        "use_tls": True,
        "from_name": "Miami Get Away",
    }
    settings.update(overrides)
    return EmailService(**settings)


class TestRender:

    def test_pago_parcial(self):
        subject, html = _service().render_payment_notification(_reservation(), Decimal("300"), False)
        assert subject == "Partial Payment Received - Reservation #42"
        assert "$300.00" in html
        assert "Remaining balance" in html
        assert "$700.00" in html

    def test_pago_completo(self):
        reservation = _reservation(amount_paid=Decimal("1000"), amount_due=Decimal("0"))
        subject, html = _service().render_payment_notification(reservation, Decimal("700"), True)
        assert subject == "Full Payment Received - Reservation #42"
        assert "Remaining balance" not in html

    def test_cambio_de_estado(self):
        subject, html = _service().render_status_change(_reservation(), "confirmed")
        assert subject == "Reservation Update #42 - Check-in completed. Enjoy your stay!"
        assert "confirmed" in html
        assert "checked_in" in html

    def test_escapa_html_del_cliente(self):
        _, html = _service().render_status_change(_reservation(client_name="<script>x</script>"), "confirmed")
        assert "<script>" not in html


class TestEnvio:

    @patch("services.email_service.smtplib.SMTP")
    def test_envia_por_smtp(self, smtp_cls):
        server = MagicMock()
        smtp_cls.return_value.__enter__.return_value = server

        sent = _service().send_payment_notification(_reservation(), Decimal("300"), False)

        assert sent is True
        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bookings@example.com", "secret")
        from_addr, to_addrs, _ = server.sendmail.call_args[0]
        assert from_addr == "bookings@example.com"
        assert to_addrs == ["jane@example.com"]

    @patch("services.email_service.smtplib.SMTP")
    def test_sin_host_se_omite(self, smtp_cls):
        service = _service(host="")
        assert service.enabled is False
        assert service.send_confirmation_email(_reservation()) is False
        smtp_cls.assert_not_called()

    @patch("services.email_service.smtplib.SMTP")
    def test_sin_destinatario_se_omite(self, smtp_cls):
        assert _service().send_status_change_notification(_reservation(client_email=None), "confirmed") is False
        smtp_cls.assert_not_called()

    @patch("services.email_service.smtplib.SMTP")
    def test_error_smtp_se_traduce(self, smtp_cls):
        server = MagicMock()
        server.sendmail.side_effect = smtplib.SMTPException("boom")
        smtp_cls.return_value.__enter__.return_value = server

        with pytest.raises(NotificationError):
            _service().send_status_change_notification(_reservation(), "confirmed")

    @patch("services.email_service.smtplib.SMTP")
    def test_conexion_rechazada_se_traduce(self, smtp_cls):
        smtp_cls.side_effect = ConnectionRefusedError("refused")
        with pytest.raises(NotificationError):
            _service().send_confirmation_email(_reservation())

    @patch("services.email_service.smtplib.SMTP")
    def test_adjunta_pdf(self, smtp_cls, tmp_path):
        server = MagicMock()
        smtp_cls.return_value.__enter__.return_value = server
        pdf = tmp_path / "reservation-42.pdf"
        pdf.write_bytes(b"%PDF-1.4 test")

        assert _service().send_reservation_pdf(_reservation(), str(pdf)) is True
        raw_message = server.sendmail.call_args[0][2]
        assert 'filename="reservation-42.pdf"' in raw_message

    def test_pdf_inexistente(self, tmp_path):
        with pytest.raises(NotificationError):
            _service().send_reservation_pdf(_reservation(), str(tmp_path / "missing.pdf"))

    @patch("services.email_service.smtplib.SMTP")
    def test_error_de_template_se_traduce(self, smtp_cls):
        with patch("services.email_service._env.get_template", side_effect=RuntimeError("template roto")):
            with pytest.raises(NotificationError) as exc_info:
                _service().send_status_change_notification(_reservation(), "confirmed")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        smtp_cls.assert_not_called()

    def test_reserva_sin_fechas_se_traduce(self):
        with pytest.raises(NotificationError):
            _service().send_confirmation_email(_reservation(check_in_date=None))
