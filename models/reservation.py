"""
Modelo de Reserva
Incluye: estados tipados, desglose de importes y resumen de pagos (caché derivada de reservation_payments)
"""

from enum import Enum

from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Numeric, Text, Index,
)
from sqlalchemy.orm import relationship

from database.conexion import Base
from utils.timezone import utc_now


# ========================================================================
# ENUMS
# ========================================================================

class ReservationStatus(str, Enum):
    """Ciclo de vida de la estadía (solo avanza)"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"


class PaymentStatus(str, Enum):
    """Estado del dinero adeudado"""
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETE = "complete"


# Orden del ciclo de vida, usado para impedir retrocesos automáticos
STATUS_ORDER = {
    ReservationStatus.PENDING.value: 0,
    ReservationStatus.CONFIRMED.value: 1,
    ReservationStatus.CHECKED_IN.value: 2,
    ReservationStatus.CHECKED_OUT.value: 3,
}


# ----------- RESERVA -----------
class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index('idx_reservation_client', 'client_id'),
        Index('idx_reservation_apartment', 'apartment_id'),
        Index('idx_reservation_status', 'status'),
        Index('idx_reservation_dates', 'check_in_date', 'check_out_date'),
    )

    id = Column(Integer, primary_key=True, index=True)
    # Catálogos de propiedades y clientes externos: sin FK
    apartment_id = Column(Integer, nullable=False)
    client_id = Column(Integer, nullable=True)

    # Datos del cliente desnormalizados (para emails y PDF)
    client_name = Column(String(150), nullable=True)
    client_email = Column(String(150), nullable=True)
    client_phone = Column(String(40), nullable=True)

    # Fechas (solo calendario)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    nights = Column(Integer, nullable=False, default=1)

    # Desglose
    price_per_night = Column(Numeric(12, 2), nullable=False, default=0)
    cleaning_fee = Column(Numeric(12, 2), nullable=False, default=0)
    other_expenses = Column(Numeric(12, 2), nullable=False, default=0)
    taxes = Column(Numeric(12, 2), nullable=False, default=0)
    parking_fee = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)

    # Resumen de pagos: se recalcula desde reservation_payments en cada mutación
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    amount_due = Column(Numeric(12, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    payments = relationship(
        "ReservationPayment",
        back_populates="reservation",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_fully_paid(self) -> bool:
        return self.payment_status == PaymentStatus.COMPLETE.value

    def __repr__(self):
        return f"<Reservation(id={self.id}, status='{self.status}', payment_status='{self.payment_status}')>"
