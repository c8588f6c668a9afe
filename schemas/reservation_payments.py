from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, condecimal, constr, model_validator

from models.reservation_payment import PaymentMethod

PositiveAmount = condecimal(gt=0, max_digits=12, decimal_places=2)


class RegisterPaymentRequest(BaseModel):
    """Pago registrado contra una reserva (POST /reservations/{id}/payments)"""
    amount: PositiveAmount
    payment_method: PaymentMethod
    payment_reference: Optional[constr(strip_whitespace=True, max_length=120)] = None
    notes: Optional[str] = None
    payment_date: Optional[datetime] = None  # por defecto: ahora


class ReservationPaymentCreate(RegisterPaymentRequest):
    reservation_id: PositiveInt


class ReservationPaymentUpdate(BaseModel):
    amount: Optional[PositiveAmount] = None
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[constr(strip_whitespace=True, max_length=120)] = None
    notes: Optional[str] = None
    payment_date: Optional[datetime] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def validar_datos(cls, data):
        if isinstance(data, dict) and data:
            return data
        raise ValueError("Se requiere al menos un campo para actualizar")


class ReservationPaymentRead(BaseModel):
    id: int
    reservation_id: int
    amount: condecimal(max_digits=12, decimal_places=2)
    payment_date: datetime
    payment_method: str
    payment_reference: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
