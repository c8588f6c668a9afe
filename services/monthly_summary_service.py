"""
Resúmenes mensuales: cantidad de reservas, cantidad de pagos e ingresos del período
"""

from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.monthly_summary import MonthlySummary
from models.reservation import Reservation
from models.reservation_payment import ReservationPayment
from services.email_service import EmailService
from services.errors import NotFoundError, ValidationError, PersistenceError
from services.pdf_service import PdfService
from utils.logging_utils import log_event
from utils.money import ZERO, as_float, money, money_sum

GROUP_BY_OPTIONS = ("day", "month", "year")


def month_bounds(month: int, year: int) -> Tuple[date, date]:
    """[primer día del mes, primer día del mes siguiente)"""
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if year < 1900:
        raise ValidationError("Invalid year")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def _period_key(moment: datetime, group_by: str) -> str:
    if group_by == "day":
        return moment.strftime("%Y-%m-%d")
    if group_by == "month":
        return moment.strftime("%Y-%m")
    return moment.strftime("%Y")


class MonthlySummaryService:

    def __init__(self, notifier=None, pdf_service: PdfService = None):
        self.notifier = notifier if notifier is not None else EmailService()
        self.pdf_service = pdf_service or PdfService()

    def get_reservations_by_month(self, db: Session, month: int, year: int) -> List[Reservation]:
        start, end = month_bounds(month, year)
        return (
            db.query(Reservation)
            .filter(Reservation.check_in_date >= start, Reservation.check_in_date < end)
            .order_by(Reservation.check_in_date, Reservation.id)
            .all()
        )

    def get_payments_by_month(self, db: Session, month: int, year: int) -> List[ReservationPayment]:
        start, end = month_bounds(month, year)
        return (
            db.query(ReservationPayment)
            .filter(
                ReservationPayment.payment_date >= datetime.combine(start, time.min),
                ReservationPayment.payment_date < datetime.combine(end, time.min),
            )
            .order_by(ReservationPayment.payment_date, ReservationPayment.id)
            .all()
        )

    def _get_summary(self, db: Session, month: int, year: int):
        return (
            db.query(MonthlySummary)
            .filter(MonthlySummary.month == month, MonthlySummary.year == year)
            .first()
        )

    def generate_monthly_summary(self, db: Session, month: int, year: int, usuario: str = "system") -> MonthlySummary:
        """Calcula los totales del mes y crea o actualiza el resumen"""
        reservations = self.get_reservations_by_month(db, month, year)
        payments = self.get_payments_by_month(db, month, year)
        totals = {
            "total_reservations": len(reservations),
            "total_payments": len(payments),
            "total_revenue": money_sum(p.amount for p in payments),
        }

        try:
            summary = self._get_summary(db, month, year)
            if summary is None:
                summary = MonthlySummary(month=month, year=year, **totals)
                db.add(summary)
            else:
                for key, value in totals.items():
                    setattr(summary, key, value)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Error guardando resumen {month:02d}/{year}: {e}") from e

        log_event("summary", usuario, "Generar resumen mensual", f"{month:02d}/{year}, revenue=${totals['total_revenue']}")
        return summary

    def get_summary_details(self, db: Session, month: int, year: int) -> Dict[str, Any]:
        month_bounds(month, year)
        summary = self._get_summary(db, month, year)
        if summary is None:
            raise NotFoundError("Monthly summary", f"{month:02d}/{year}")
        return {
            "summary": summary,
            "reservations": self.get_reservations_by_month(db, month, year),
            "payments": self.get_payments_by_month(db, month, year),
        }

    def generate_summary_pdf(self, db: Session, month: int, year: int) -> bytes:
        summary = self.generate_monthly_summary(db, month, year)
        reservations = self.get_reservations_by_month(db, month, year)
        payments = self.get_payments_by_month(db, month, year)
        return self.pdf_service.generate_monthly_summary_pdf(summary, reservations, payments)

    def send_summary_by_email(self, db: Session, month: int, year: int, email: str) -> bool:
        """True si el email salió; False si el envío de emails está deshabilitado"""
        pdf_bytes = self.generate_summary_pdf(db, month, year)
        return bool(self.notifier.send_monthly_summary_email(email, pdf_bytes, month, year))

    def get_sales_volume(self, db: Session, date_from: date, date_to: date, group_by: str = "month") -> Dict[str, Any]:
        """Ingresos y cantidad de pagos agrupados por día/mes/año entre date_from y date_to (inclusive)"""
        if group_by not in GROUP_BY_OPTIONS:
            raise ValidationError(f"group_by must be one of {', '.join(GROUP_BY_OPTIONS)}")
        if date_to < date_from:
            raise ValidationError("'to' must be on or after 'from'")

        payments = (
            db.query(ReservationPayment)
            .filter(
                ReservationPayment.payment_date >= datetime.combine(date_from, time.min),
                ReservationPayment.payment_date < datetime.combine(date_to + timedelta(days=1), time.min),
            )
            .order_by(ReservationPayment.payment_date)
            .all()
        )

        buckets: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        for payment in payments:
            key = _period_key(payment.payment_date, group_by)
            bucket = buckets.setdefault(key, {"revenue": ZERO, "count": 0})
            bucket["revenue"] += money(payment.amount)
            bucket["count"] += 1

        series = [
            {"period": period, "total_revenue": as_float(b["revenue"]), "total_payments": b["count"]}
            for period, b in buckets.items()
        ]
        return {
            "from": date_from.isoformat(),
            "to": date_to.isoformat(),
            "group_by": group_by,
            "series": series,
            "totals": {
                "total_revenue": as_float(money_sum(b["revenue"] for b in buckets.values())),
                "total_payments": sum(b["count"] for b in buckets.values()),
            },
        }
