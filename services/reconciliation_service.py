"""
Motor de conciliación de pagos de reservas
SINGLE SOURCE OF TRUTH: amount_paid / amount_due / payment_status de una reserva se derivan
siempre de la suma de TODOS sus pagos (reservation_payments), nunca de deltas en memoria.

Toda mutación de pagos (alta, edición, baja) pasa por on_payment_mutated dentro de la misma
transacción y bajo un lock por reserva.
"""

import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, NamedTuple, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.reservation import Reservation, PaymentStatus
from models.reservation_payment import ReservationPayment, PaymentMethod, PAYMENT_METHODS
from services.email_service import EmailService
from services.errors import NotFoundError, ValidationError, PersistenceError, NotificationError
from services.reservation_store import ReservationStore, PaymentStore
from utils.logging_utils import get_logger, log_event
from utils.money import ZERO, money, money_sum
from utils.timezone import utc_now

logger = get_logger(__name__)


# ========================================================================
# REGLAS PURAS
# ========================================================================

class PaymentSummary(NamedTuple):
    amount_paid: Decimal
    amount_due: Decimal
    payment_status: str

    def as_fields(self) -> Dict[str, Any]:
        return {
            "amount_paid": self.amount_paid,
            "amount_due": self.amount_due,
            "payment_status": self.payment_status,
        }


def derive_payment_status(amount_paid: Decimal, amount_due: Decimal) -> str:
    """pending si no se pagó nada, complete si no queda saldo, partial en otro caso"""
    if amount_paid <= ZERO:
        return PaymentStatus.PENDING.value
    if amount_due <= ZERO:
        return PaymentStatus.COMPLETE.value
    return PaymentStatus.PARTIAL.value


def compute_payment_summary(total_amount, amounts: Iterable) -> PaymentSummary:
    total = money(total_amount)
    amount_paid = money_sum(amounts)
    amount_due = max(ZERO, total - amount_paid)
    return PaymentSummary(amount_paid, amount_due, derive_payment_status(amount_paid, amount_due))


def validate_amount(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError("Amount is required")
    try:
        raw = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Amount must be a number (got {value!r})")
    if not raw.is_finite():
        raise ValidationError("Amount must be a finite number")
    amount = money(raw)
    if amount <= ZERO:
        raise ValidationError("Amount must be greater than 0")
    return amount


def validate_payment_method(value) -> str:
    if isinstance(value, PaymentMethod):
        return value.value
    method = (value or "").strip().lower() if isinstance(value, str) else ""
    if method not in PAYMENT_METHODS:
        raise ValidationError(
            f"Invalid payment method {value!r}. Allowed: {', '.join(PAYMENT_METHODS)}"
        )
    return method


# ========================================================================
# SERIALIZACIÓN POR RESERVA
# ========================================================================

class _ReservationLocks:
    """Un lock por reservation_id para que dos recálculos de la misma reserva no se pisen"""

    def __init__(self):
        self._guard = threading.Lock()
        # reservation_id -> [lock, cantidad de hilos que lo usan o esperan]
        self._locks: Dict[int, list] = {}

    @contextmanager
    def hold(self, reservation_id: int):
        with self._guard:
            entry = self._locks.get(reservation_id)
            if entry is None:
                entry = self._locks[reservation_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[reservation_id]


_reservation_locks = _ReservationLocks()


def reservation_lock(reservation_id: int):
    """Sección crítica de una reserva (también la usa ReservationService)"""
    return _reservation_locks.hold(reservation_id)


# ========================================================================
# SERVICIO
# ========================================================================

class ReconciliationService:
    """
    Registra pagos y mantiene consistente el resumen monetario de cada reserva.

    Args:
        notifier: objeto con send_payment_notification(reservation, amount, is_complete)
        now: reloj para la fecha por defecto de los pagos
    """

    def __init__(self, notifier=None, now: Callable[[], datetime] = utc_now):
        self.notifier = notifier if notifier is not None else EmailService()
        self.now = now

    # ----- hook único post-mutación -----

    def on_payment_mutated(self, db: Session, reservation_id: int) -> Optional[Reservation]:
        """
        Recalcula y persiste el resumen de pagos desde la lista completa de pagos.
        No hace commit. Devuelve None si la reserva ya no existe.
        """
        reservation = ReservationStore.get_reservation_by_id(db, reservation_id, for_update=True)
        if reservation is None:
            return None
        payments = PaymentStore.get_payments_by_reservation(db, reservation_id)
        summary = compute_payment_summary(reservation.total_amount, [p.amount for p in payments])
        return ReservationStore.update_reservation(db, reservation_id, summary.as_fields())

    # ----- operaciones públicas -----

    def register_payment(
        self,
        db: Session,
        reservation_id: int,
        amount,
        payment_method,
        payment_reference: Optional[str] = None,
        notes: Optional[str] = None,
        payment_date: Optional[datetime] = None,
        usuario: str = "system",
    ) -> Reservation:
        """Registra un pago contra la reserva y devuelve la reserva actualizada"""
        _, reservation = self._add_payment(
            db, reservation_id, amount, payment_method, payment_reference, notes, payment_date, usuario
        )
        return reservation

    def create_payment(self, db: Session, data: Dict[str, Any], usuario: str = "system") -> ReservationPayment:
        """Alta de un pago como recurso propio: misma cascada, devuelve el pago creado"""
        reservation_id = data.get("reservation_id")
        if reservation_id is None:
            raise ValidationError("reservation_id is required")
        payment, _ = self._add_payment(
            db,
            reservation_id,
            data.get("amount"),
            data.get("payment_method"),
            data.get("payment_reference"),
            data.get("notes"),
            data.get("payment_date"),
            usuario,
        )
        return payment

    def update_payment(
        self, db: Session, payment_id: int, patch: Dict[str, Any], usuario: str = "system"
    ) -> ReservationPayment:
        changes = dict(patch)
        if "reservation_id" in changes:
            raise ValidationError("A payment cannot be moved to another reservation")
        if "amount" in changes:
            changes["amount"] = validate_amount(changes["amount"])
        if "payment_method" in changes:
            changes["payment_method"] = validate_payment_method(changes["payment_method"])
        if "payment_date" in changes and changes["payment_date"] is None:
            raise ValidationError("payment_date cannot be null")

        existing = PaymentStore.get_payment_by_id(db, payment_id)
        if existing is None:
            raise NotFoundError("Reservation payment", payment_id)
        reservation_id = existing.reservation_id

        with reservation_lock(reservation_id):
            try:
                payment = PaymentStore.update_reservation_payment(db, payment_id, changes)
                if payment.reservation_id is not None:
                    self.on_payment_mutated(db, payment.reservation_id)
                db.commit()
            except (NotFoundError, ValidationError):
                db.rollback()
                raise
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Error actualizando pago {payment_id}: {e}") from e

        log_event("payment_update", usuario, "Editar pago", f"payment_id={payment_id}, campos={sorted(changes)}")
        return payment

    def delete_payment(self, db: Session, payment_id: int, usuario: str = "system") -> None:
        payment = PaymentStore.get_payment_by_id(db, payment_id)
        if payment is None:
            raise NotFoundError("Reservation payment", payment_id)
        reservation_id = payment.reservation_id
        amount = payment.amount

        with reservation_lock(reservation_id):
            try:
                PaymentStore.delete_reservation_payment(db, payment_id)
                self.on_payment_mutated(db, reservation_id)
                db.commit()
            except NotFoundError:
                db.rollback()
                raise
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Error eliminando pago {payment_id}: {e}") from e

        log_event(
            "payment_delete", usuario, "Eliminar pago",
            f"payment_id={payment_id}, reservation_id={reservation_id}, amount=${amount}",
        )

    def recalculate_reservation_payments(self, db: Session, reservation_id: int) -> Optional[Reservation]:
        """Idempotente. Si la reserva no existe no hace nada y devuelve None."""
        with reservation_lock(reservation_id):
            try:
                reservation = self.on_payment_mutated(db, reservation_id)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Error recalculando reserva {reservation_id}: {e}") from e

        if reservation is None:
            logger.info("Recalculo omitido: la reserva %s no existe", reservation_id)
            return None
        log_event(
            "recalculation", "system", "Recalcular pagos",
            f"reservation_id={reservation_id}, paid=${reservation.amount_paid}, due=${reservation.amount_due}",
        )
        return reservation

    # ----- internos -----

    def _add_payment(
        self,
        db: Session,
        reservation_id: int,
        amount,
        payment_method,
        payment_reference: Optional[str],
        notes: Optional[str],
        payment_date: Optional[datetime],
        usuario: str,
    ) -> Tuple[ReservationPayment, Reservation]:
        # Validar antes de cualquier escritura
        amount = validate_amount(amount)
        method = validate_payment_method(payment_method)

        with reservation_lock(reservation_id):
            try:
                reservation = ReservationStore.get_reservation_by_id(db, reservation_id, for_update=True)
                if reservation is None:
                    raise NotFoundError("Reservation", reservation_id)

                payment = PaymentStore.create_reservation_payment(db, {
                    "reservation_id": reservation_id,
                    "amount": amount,
                    "payment_method": method,
                    "payment_reference": payment_reference,
                    "notes": notes,
                    "payment_date": payment_date or self.now(),
                })
                reservation = self.on_payment_mutated(db, reservation_id)
                # Pago + recálculo en un único commit
                db.commit()
            except NotFoundError:
                db.rollback()
                raise
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Error registrando pago en reserva {reservation_id}: {e}") from e

        log_event(
            "payment", usuario, "Registrar pago",
            f"reservation_id={reservation_id}, amount=${amount}, method={method}, due=${reservation.amount_due}",
        )
        self._notify_payment(reservation, amount)
        return payment, reservation

    def _notify_payment(self, reservation: Reservation, amount: Decimal) -> None:
        is_complete = money(reservation.amount_due) <= ZERO
        try:
            self.notifier.send_payment_notification(reservation, amount, is_complete)
        except NotificationError as e:
            # El estado financiero ya está commiteado: se reporta y se sigue
            logger.error("Notificación de pago fallida para reserva %s: %s", reservation.id, e)
            log_event("notification", "system", "Error notificando pago", f"reservation_id={reservation.id}")
        except Exception:
            logger.exception("Error inesperado notificando pago de reserva %s", reservation.id)
            log_event("notification", "system", "Error notificando pago", f"reservation_id={reservation.id}")
