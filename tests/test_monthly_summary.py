"""
Tests de resúmenes mensuales, volumen de ventas y PDFs
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from datetime import date, datetime
from decimal import Decimal

from models.monthly_summary import MonthlySummary
from services.errors import NotFoundError, ValidationError
from services.monthly_summary_service import MonthlySummaryService, month_bounds
from services.pdf_service import PdfService
from services.reservation_store import PaymentStore


@pytest.fixture
def service(notifier, tmp_path):
    return MonthlySummaryService(notifier=notifier, pdf_service=PdfService(output_dir=str(tmp_path)))


@pytest.fixture
def marzo(db_session, make_reservation):
    """Dos reservas en marzo, una en abril; pagos repartidos entre meses"""
    first = make_reservation(check_in_date=date(2025, 3, 2), check_out_date=date(2025, 3, 5))
    second = make_reservation(check_in_date=date(2025, 3, 28), check_out_date=date(2025, 4, 2))
    make_reservation(check_in_date=date(2025, 4, 10), check_out_date=date(2025, 4, 12))
    for reservation_id, amount, when in (
        (first.id, "300", datetime(2025, 3, 1, 9, 0)),
        (first.id, "200.50", datetime(2025, 3, 31, 23, 59)),
        (second.id, "100", datetime(2025, 4, 1, 0, 0)),
        (second.id, "50", datetime(2026, 1, 15, 12, 0)),
    ):
        PaymentStore.create_reservation_payment(db_session, {
            "reservation_id": reservation_id,
            "amount": Decimal(amount),
            "payment_method": "cash",
            "payment_date": when,
        })
    db_session.commit()
    return first, second


class TestMonthBounds:

    def test_limites(self):
        assert month_bounds(3, 2025) == (date(2025, 3, 1), date(2025, 4, 1))
        assert month_bounds(12, 2025) == (date(2025, 12, 1), date(2026, 1, 1))

    @pytest.mark.parametrize("month,year", [(0, 2025), (13, 2025), (5, 1800)])
    def test_periodo_invalido(self, month, year):
        with pytest.raises(ValidationError):
            month_bounds(month, year)


class TestResumenMensual:

    def test_totales_del_mes(self, db_session, marzo, service):
        summary = service.generate_monthly_summary(db_session, 3, 2025)

        assert summary.total_reservations == 2
        assert summary.total_payments == 2
        assert summary.total_revenue == Decimal("500.50")

    def test_regenerar_actualiza_sin_duplicar(self, db_session, marzo, service):
        first, _ = marzo
        service.generate_monthly_summary(db_session, 3, 2025)
        PaymentStore.create_reservation_payment(db_session, {
            "reservation_id": first.id,
            "amount": Decimal("99.50"),
            "payment_method": "card",
            "payment_date": datetime(2025, 3, 15, 10, 0),
        })
        db_session.commit()

        summary = service.generate_monthly_summary(db_session, 3, 2025)

        assert db_session.query(MonthlySummary).count() == 1
        assert summary.total_payments == 3
        assert summary.total_revenue == Decimal("600.00")

    def test_detalle(self, db_session, marzo, service):
        service.generate_monthly_summary(db_session, 3, 2025)
        details = service.get_summary_details(db_session, 3, 2025)

        assert details["summary"].month == 3
        assert len(details["reservations"]) == 2
        assert [p.amount for p in details["payments"]] == [Decimal("300"), Decimal("200.50")]

    def test_detalle_sin_resumen(self, db_session, service):
        with pytest.raises(NotFoundError):
            service.get_summary_details(db_session, 7, 2025)

    def test_pdf_y_envio(self, db_session, marzo, service, notifier):
        pdf_bytes = service.generate_summary_pdf(db_session, 3, 2025)
        assert pdf_bytes.startswith(b"%PDF")

        assert service.send_summary_by_email(db_session, 3, 2025, "owner@example.com") is True
        assert notifier.of("monthly_summary") == [("monthly_summary", "owner@example.com", 3, 2025)]


class TestVolumenDeVentas:

    def test_agrupado_por_mes(self, db_session, marzo, service):
        result = service.get_sales_volume(db_session, date(2025, 3, 1), date(2025, 4, 30), "month")

        assert result["series"] == [
            {"period": "2025-03", "total_revenue": 500.5, "total_payments": 2},
            {"period": "2025-04", "total_revenue": 100.0, "total_payments": 1},
        ]
        assert result["totals"] == {"total_revenue": 600.5, "total_payments": 3}

    def test_agrupado_por_dia_incluye_el_ultimo_dia(self, db_session, marzo, service):
        result = service.get_sales_volume(db_session, date(2025, 3, 31), date(2025, 3, 31), "day")
        assert result["series"] == [{"period": "2025-03-31", "total_revenue": 200.5, "total_payments": 1}]

    def test_agrupado_por_anio(self, db_session, marzo, service):
        result = service.get_sales_volume(db_session, date(2025, 1, 1), date(2026, 12, 31), "year")
        assert [row["period"] for row in result["series"]] == ["2025", "2026"]

    def test_parametros_invalidos(self, db_session, service):
        with pytest.raises(ValidationError):
            service.get_sales_volume(db_session, date(2025, 1, 1), date(2025, 2, 1), "week")
        with pytest.raises(ValidationError):
            service.get_sales_volume(db_session, date(2025, 2, 1), date(2025, 1, 1), "day")


class TestPdfService:

    def test_invoice_en_disco(self, db_session, make_reservation, tmp_path):
        reservation = make_reservation()
        path = PdfService(output_dir=str(tmp_path)).generate_invoice_pdf(reservation)

        assert Path(path).name == f"reservation-{reservation.id}.pdf"
        assert Path(path).read_bytes().startswith(b"%PDF")
