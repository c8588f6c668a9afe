"""
Generación de PDFs con ReportLab: comprobante de reserva y resumen mensual
"""

import os
from io import BytesIO
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

import config
from services.errors import NotificationError
from utils.logging_utils import get_logger
from utils.money import as_float

logger = get_logger(__name__)


def _fmt_money(value) -> str:
    return f"${as_float(value):,.2f}"


def _fmt_date(value) -> str:
    return value.strftime("%m/%d/%Y") if value else "-"


def _table(rows: List[list], header: bool = True) -> Table:
    table = Table(rows, hAlign="LEFT")
    style = [
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    if header:
        style += [
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1f4e79")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ]
    table.setStyle(TableStyle(style))
    return table


class PdfService:
    """Renderiza PDFs. El invoice va a disco (se adjunta por email), el resumen se devuelve en bytes."""

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = output_dir or config.PDF_OUTPUT_DIR
        self.styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "GetawayTitle",
            parent=self.styles["Heading1"],
            fontSize=18,
            spaceAfter=12,
            alignment=1,
        )

    def _invoice_elements(self, reservation) -> list:
        normal = self.styles["Normal"]
        elements = [
            Paragraph("Comprobante de Reserva", self.title_style),
            Paragraph(f"Reserva #{reservation.id}", self.styles["Heading2"]),
            Paragraph(f"Cliente: {reservation.client_name or '-'}", normal),
            Paragraph(f"Email: {reservation.client_email or '-'}", normal),
            Paragraph(f"Teléfono: {reservation.client_phone or '-'}", normal),
            Spacer(1, 12),
        ]
        detail = [
            ["Check-in", _fmt_date(reservation.check_in_date)],
            ["Check-out", _fmt_date(reservation.check_out_date)],
            ["Noches", str(reservation.nights)],
            ["Precio por noche", _fmt_money(reservation.price_per_night)],
            ["Limpieza", _fmt_money(reservation.cleaning_fee)],
            ["Otros gastos", _fmt_money(reservation.other_expenses)],
            ["Impuestos", _fmt_money(reservation.taxes)],
            ["Estacionamiento", _fmt_money(reservation.parking_fee)],
            ["Total", _fmt_money(reservation.total_amount)],
            ["Pagado", _fmt_money(reservation.amount_paid)],
            ["Pendiente", _fmt_money(reservation.amount_due)],
            ["Estatus", reservation.status],
            ["Estatus de pago", reservation.payment_status],
        ]
        elements.append(_table(detail, header=False))
        return elements

    def generate_invoice_pdf(self, reservation) -> str:
        """
        Genera el comprobante de la reserva en PDF_OUTPUT_DIR

        Returns:
            Ruta del archivo generado
        """
        try:
            os.makedirs(self.output_dir, exist_ok=True)
            file_path = os.path.join(self.output_dir, f"reservation-{reservation.id}.pdf")
            doc = SimpleDocTemplate(file_path, pagesize=A4)
            doc.build(self._invoice_elements(reservation))
        except OSError as e:
            raise NotificationError(f"Error generando PDF de reserva {reservation.id}: {e}") from e
        logger.info("PDF de reserva %s generado en %s", reservation.id, file_path)
        return file_path

    def generate_monthly_summary_pdf(self, summary, reservations, payments) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4)
        elements = [
            Paragraph(f"Resumen Mensual {summary.month:02d}/{summary.year}", self.title_style),
            _table([
                ["Reservas", "Pagos", "Ingresos"],
                [str(summary.total_reservations), str(summary.total_payments), _fmt_money(summary.total_revenue)],
            ]),
            Spacer(1, 18),
            Paragraph("Reservas", self.styles["Heading2"]),
        ]

        if reservations:
            rows = [["#", "Cliente", "Check-in", "Check-out", "Total", "Estado"]]
            for r in reservations:
                rows.append([
                    str(r.id), r.client_name or "-", _fmt_date(r.check_in_date),
                    _fmt_date(r.check_out_date), _fmt_money(r.total_amount), r.status,
                ])
            elements.append(_table(rows))
        else:
            elements.append(Paragraph("Sin reservas en el período.", self.styles["Normal"]))

        elements += [Spacer(1, 18), Paragraph("Pagos", self.styles["Heading2"])]
        if payments:
            rows = [["#", "Reserva", "Fecha", "Método", "Monto"]]
            for p in payments:
                rows.append([
                    str(p.id), str(p.reservation_id), _fmt_date(p.payment_date),
                    p.payment_method, _fmt_money(p.amount),
                ])
            elements.append(_table(rows))
        else:
            elements.append(Paragraph("Sin pagos en el período.", self.styles["Normal"]))

        doc.build(elements)
        return buffer.getvalue()
