"""
Acceso a datos de reservas y pagos de reservas.
Contratos delgados usados por el núcleo: hacen flush, el servicio que llama decide el commit.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from database.conexion import execute
from models.reservation import Reservation, ReservationStatus
from models.reservation_payment import ReservationPayment
from services.errors import NotFoundError, ValidationError


# Estados que todavía pueden avanzar automáticamente
STATUS_UPDATE_CANDIDATES = (
    ReservationStatus.CONFIRMED.value,
    ReservationStatus.CHECKED_IN.value,
)

RESERVATION_UPDATABLE_FIELDS = {
    "apartment_id", "client_id", "client_name", "client_email", "client_phone",
    "check_in_date", "check_out_date", "nights", "price_per_night", "cleaning_fee",
    "other_expenses", "taxes", "parking_fee", "total_amount", "amount_paid",
    "amount_due", "status", "payment_status", "notes",
}

PAYMENT_UPDATABLE_FIELDS = {
    "amount", "payment_date", "payment_method", "payment_reference", "notes",
}


def _apply_fields(instance, fields: Dict[str, Any], allowed: set) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Campos no actualizables: {sorted(unknown)}")
    for key, value in fields.items():
        setattr(instance, key, value)


class ReservationStore:
    """CRUD y consultas de estado sobre la tabla reservations"""

    @staticmethod
    def get_reservation_by_id(db: Session, reservation_id: int, for_update: bool = False) -> Optional[Reservation]:
        query = db.query(Reservation).filter(Reservation.id == reservation_id)
        if for_update:
            # Bloquea la fila hasta el commit (ignorado por SQLite)
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def get_all_reservations(
        db: Session,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
        client_name: Optional[str] = None,
        client_email: Optional[str] = None,
    ) -> List[Reservation]:
        query = db.query(Reservation)
        if start_date:
            query = query.filter(Reservation.check_in_date >= start_date)
        if end_date:
            query = query.filter(Reservation.check_out_date <= end_date)
        if status:
            query = query.filter(Reservation.status == status)
        if client_name:
            query = query.filter(Reservation.client_name.ilike(f"%{client_name}%"))
        if client_email:
            query = query.filter(Reservation.client_email == client_email)
        return query.order_by(Reservation.check_in_date.desc(), Reservation.id.desc()).all()

    @staticmethod
    def create_reservation(db: Session, fields: Dict[str, Any]) -> Reservation:
        reservation = Reservation()
        _apply_fields(reservation, fields, RESERVATION_UPDATABLE_FIELDS)
        db.add(reservation)
        db.flush()
        return reservation

    @staticmethod
    def update_reservation(db: Session, reservation_id: int, fields: Dict[str, Any]) -> Reservation:
        reservation = ReservationStore.get_reservation_by_id(db, reservation_id)
        if not reservation:
            raise NotFoundError("Reservation", reservation_id)
        _apply_fields(reservation, fields, RESERVATION_UPDATABLE_FIELDS)
        db.flush()
        return reservation

    @staticmethod
    def delete_reservation(db: Session, reservation_id: int) -> None:
        reservation = ReservationStore.get_reservation_by_id(db, reservation_id)
        if not reservation:
            raise NotFoundError("Reservation", reservation_id)
        db.delete(reservation)
        db.flush()

    @staticmethod
    def get_reservations_for_status_update(db: Session) -> List[Reservation]:
        """Reservas confirmed/checked_in. El filtro por fecha lo hace el scheduler."""
        return (
            db.query(Reservation)
            .filter(Reservation.status.in_(STATUS_UPDATE_CANDIDATES))
            .order_by(Reservation.id)
            .all()
        )

    @staticmethod
    def transition_status(db: Session, reservation_id: int, expected_status: str, new_status: str) -> bool:
        """
        Compare-and-swap de una sola fila: solo actualiza si el estado sigue siendo el esperado.

        Returns:
            True si la fila cambió
        """
        affected = execute(
            db,
            "UPDATE reservations SET status = :new_status "
            "WHERE id = :reservation_id AND status = :expected_status",
            {
                "new_status": new_status,
                "reservation_id": reservation_id,
                "expected_status": expected_status,
            },
        )
        return affected == 1


class PaymentStore:
    """CRUD sobre reservation_payments"""

    @staticmethod
    def get_all_payments(db: Session) -> List[ReservationPayment]:
        return db.query(ReservationPayment).order_by(ReservationPayment.payment_date.desc()).all()

    @staticmethod
    def get_payment_by_id(db: Session, payment_id: int) -> Optional[ReservationPayment]:
        return db.query(ReservationPayment).filter(ReservationPayment.id == payment_id).first()

    @staticmethod
    def get_payments_by_reservation(db: Session, reservation_id: int) -> List[ReservationPayment]:
        return (
            db.query(ReservationPayment)
            .filter(ReservationPayment.reservation_id == reservation_id)
            .order_by(ReservationPayment.payment_date.desc(), ReservationPayment.id.desc())
            .all()
        )

    @staticmethod
    def create_reservation_payment(db: Session, fields: Dict[str, Any]) -> ReservationPayment:
        payment = ReservationPayment(**fields)
        db.add(payment)
        db.flush()
        return payment

    @staticmethod
    def update_reservation_payment(db: Session, payment_id: int, patch: Dict[str, Any]) -> ReservationPayment:
        payment = PaymentStore.get_payment_by_id(db, payment_id)
        if not payment:
            raise NotFoundError("Reservation payment", payment_id)
        _apply_fields(payment, patch, PAYMENT_UPDATABLE_FIELDS)
        db.flush()
        return payment

    @staticmethod
    def delete_reservation_payment(db: Session, payment_id: int) -> None:
        payment = PaymentStore.get_payment_by_id(db, payment_id)
        if not payment:
            raise NotFoundError("Reservation payment", payment_id)
        db.delete(payment)
        db.flush()
