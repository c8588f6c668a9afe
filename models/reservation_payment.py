"""
Pagos de reservas: cada fila es una transacción aplicada al saldo de una reserva.
Es la fuente de verdad; los totales de Reservation se derivan de acá.
"""

from enum import Enum

from sqlalchemy import (
    Column, Integer, String, DateTime, Numeric, Text, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from database.conexion import Base
from utils.timezone import utc_now


class PaymentMethod(str, Enum):
    """Métodos de pago permitidos"""
    CASH = "cash"
    TRANSFER = "transfer"
    CARD = "card"


PAYMENT_METHODS = tuple(method.value for method in PaymentMethod)


class ReservationPayment(Base):
    __tablename__ = "reservation_payments"
    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_reservation_payment_amount_positive'),
        Index('idx_reservation_payment_reservation', 'reservation_id'),
        Index('idx_reservation_payment_date', 'payment_date'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(Integer, ForeignKey('reservations.id', ondelete='CASCADE'), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(DateTime, nullable=False, default=utc_now)
    payment_method = Column(String(20), nullable=False)
    payment_reference = Column(String(120), nullable=True)
    notes = Column(Text, nullable=True)

    reservation = relationship("Reservation", back_populates="payments")

    def __repr__(self):
        return f"<ReservationPayment(id={self.id}, reservation_id={self.reservation_id}, amount={self.amount})>"
