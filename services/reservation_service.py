"""
Servicio de reservas: alta/edición con notificación, totales y comprobante PDF
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.reservation import Reservation, ReservationStatus, PaymentStatus
from services.email_service import EmailService
from services.errors import NotFoundError, ValidationError, PersistenceError, NotificationError
from services.pdf_service import PdfService
from services.reconciliation_service import ReconciliationService, reservation_lock
from services.reservation_store import ReservationStore
from utils.logging_utils import get_logger, log_event
from utils.money import ZERO, money

logger = get_logger(__name__)

RESERVATION_STATUSES = tuple(s.value for s in ReservationStatus)

# Campos derivados de los pagos: no se editan a mano
DERIVED_PAYMENT_FIELDS = ("amount_paid", "amount_due", "payment_status")

_MONEY_FIELDS = ("price_per_night", "cleaning_fee", "other_expenses", "taxes", "parking_fee", "total_amount")


def calculate_nights(check_in_date: date, check_out_date: date) -> int:
    return (check_out_date - check_in_date).days


def calculate_total_amount(
    nights: int,
    price_per_night,
    cleaning_fee=0,
    other_expenses=0,
    taxes=0,
    parking_fee=0,
) -> Decimal:
    """total = noches * precio + limpieza + otros + impuestos + estacionamiento"""
    return money(
        Decimal(nights) * money(price_per_night)
        + money(cleaning_fee)
        + money(other_expenses)
        + money(taxes)
        + money(parking_fee)
    )


class ReservationService:

    def __init__(self, notifier=None, pdf_service: Optional[PdfService] = None, reconciliation: Optional[ReconciliationService] = None):
        self.notifier = notifier if notifier is not None else EmailService()
        self.pdf_service = pdf_service or PdfService()
        self.reconciliation = reconciliation or ReconciliationService(notifier=self.notifier)

    # ========== LECTURA ==========

    def get_reservation(self, db: Session, reservation_id: int) -> Reservation:
        reservation = ReservationStore.get_reservation_by_id(db, reservation_id)
        if not reservation:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    def list_reservations(self, db: Session, **filters) -> List[Reservation]:
        return ReservationStore.get_all_reservations(db, **filters)

    # ========== ESCRITURA ==========

    def create_reservation(self, db: Session, data: Dict[str, Any], usuario: str = "system") -> Reservation:
        fields = dict(data)
        for derived in DERIVED_PAYMENT_FIELDS:
            fields.pop(derived, None)

        check_in, check_out = fields.get("check_in_date"), fields.get("check_out_date")
        if not check_in or not check_out:
            raise ValidationError("check_in_date and check_out_date are required")
        if check_out <= check_in:
            raise ValidationError("check_out_date must be after check_in_date")

        status = getattr(fields.get("status"), "value", fields.get("status")) or ReservationStatus.PENDING.value
        if status not in RESERVATION_STATUSES:
            raise ValidationError(f"Invalid status {status!r}")
        fields["status"] = status

        if not fields.get("nights"):
            fields["nights"] = calculate_nights(check_in, check_out)
        for key in _MONEY_FIELDS:
            if fields.get(key) is not None:
                fields[key] = money(fields[key])
                if fields[key] < ZERO:
                    raise ValidationError(f"{key} must be non-negative")

        if fields.get("total_amount") is None:
            fields["total_amount"] = calculate_total_amount(
                fields["nights"],
                fields.get("price_per_night") or ZERO,
                fields.get("cleaning_fee") or ZERO,
                fields.get("other_expenses") or ZERO,
                fields.get("taxes") or ZERO,
                fields.get("parking_fee") or ZERO,
            )

        # Una reserva nueva no tiene pagos
        fields["amount_paid"] = ZERO
        fields["amount_due"] = fields["total_amount"]
        fields["payment_status"] = PaymentStatus.PENDING.value

        try:
            reservation = ReservationStore.create_reservation(db, fields)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Error creando reserva: {e}") from e

        log_event("reservation", usuario, "Crear reserva", f"reservation_id={reservation.id}, total=${reservation.total_amount}")
        try:
            self.notifier.send_confirmation_email(reservation)
        except NotificationError as e:
            logger.error("Email de confirmación fallido para reserva %s: %s", reservation.id, e)
        except Exception:
            logger.exception("Error inesperado enviando confirmación de reserva %s", reservation.id)
        return reservation

    def update_reservation(self, db: Session, reservation_id: int, data: Dict[str, Any], usuario: str = "system") -> Reservation:
        changes = dict(data)
        derived = [key for key in DERIVED_PAYMENT_FIELDS if key in changes]
        if derived:
            raise ValidationError(f"Fields derived from payments cannot be edited: {derived}")
        if "status" in changes:
            changes["status"] = getattr(changes["status"], "value", changes["status"])
        if "status" in changes and changes["status"] not in RESERVATION_STATUSES:
            raise ValidationError(f"Invalid status {changes['status']!r}")
        for key in _MONEY_FIELDS:
            if changes.get(key) is not None:
                changes[key] = money(changes[key])

        with reservation_lock(reservation_id):
            try:
                current = ReservationStore.get_reservation_by_id(db, reservation_id, for_update=True)
                if not current:
                    raise NotFoundError("Reservation", reservation_id)
                previous_status = current.status
                check_in = changes.get("check_in_date", current.check_in_date)
                check_out = changes.get("check_out_date", current.check_out_date)
                if check_out <= check_in:
                    raise ValidationError("check_out_date must be after check_in_date")

                reservation = ReservationStore.update_reservation(db, reservation_id, changes)
                if "total_amount" in changes:
                    # El total cambió: due/payment_status se recalculan desde los pagos
                    reservation = self.reconciliation.on_payment_mutated(db, reservation_id)
                db.commit()
            except (NotFoundError, ValidationError):
                db.rollback()
                raise
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Error actualizando reserva {reservation_id}: {e}") from e

        log_event("reservation", usuario, "Editar reserva", f"reservation_id={reservation_id}, campos={sorted(changes)}")
        if reservation.status != previous_status:
            try:
                self.notifier.send_status_change_notification(reservation, previous_status)
            except NotificationError as e:
                logger.error("Notificación de estado fallida para reserva %s: %s", reservation_id, e)
            except Exception:
                logger.exception("Error inesperado notificando estado de reserva %s", reservation_id)
        return reservation

    def delete_reservation(self, db: Session, reservation_id: int, usuario: str = "system") -> None:
        try:
            ReservationStore.delete_reservation(db, reservation_id)
            db.commit()
        except NotFoundError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Error eliminando reserva {reservation_id}: {e}") from e
        log_event("reservation", usuario, "Eliminar reserva", f"reservation_id={reservation_id}")

    # ========== PDF ==========

    def generate_and_send_pdf(self, db: Session, reservation_id: int) -> str:
        """Genera el comprobante y lo envía al cliente. Devuelve la ruta del PDF."""
        reservation = self.get_reservation(db, reservation_id)
        pdf_path = self.pdf_service.generate_invoice_pdf(reservation)
        self.notifier.send_reservation_pdf(reservation, pdf_path)
        return pdf_path
