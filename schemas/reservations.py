from typing import Optional
from datetime import date, datetime
from pydantic import (
    BaseModel, ConfigDict, EmailStr, Field, PositiveInt, condecimal, constr,
    field_validator, model_validator,
)

from models.reservation import ReservationStatus, PaymentStatus

# Formato heredado del frontend: MM-DD-YYYY HH:mm
LEGACY_DATETIME_FORMAT = "%m-%d-%Y %H:%M"

Money = condecimal(ge=0, max_digits=12, decimal_places=2)


def parse_reservation_date(value):
    """Acepta date, datetime, ISO (YYYY-MM-DD[THH:MM...]) o MM-DD-YYYY HH:mm"""
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        raw = value.strip()
        try:
            return datetime.strptime(raw, LEGACY_DATETIME_FORMAT).date()
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError:
            raise ValueError(f"Fecha inválida: {value}")
    return value


class ReservationBase(BaseModel):
    apartment_id: PositiveInt
    client_id: Optional[PositiveInt] = None
    client_name: Optional[constr(strip_whitespace=True, max_length=150)] = None
    client_email: Optional[EmailStr] = None
    client_phone: Optional[constr(strip_whitespace=True, max_length=40)] = None
    check_in_date: date
    check_out_date: date
    notes: Optional[str] = None

    @field_validator("check_in_date", "check_out_date", mode="before")
    @classmethod
    def _parse_dates(cls, value):
        return parse_reservation_date(value)


class ReservationCreate(ReservationBase):
    nights: Optional[PositiveInt] = None
    price_per_night: condecimal(gt=0, max_digits=12, decimal_places=2)
    cleaning_fee: Money = 0
    other_expenses: Money = 0
    taxes: Money = 0
    parking_fee: Money = 0
    total_amount: Optional[Money] = None  # si no viene se calcula
    status: ReservationStatus = ReservationStatus.PENDING

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validar_fechas(self):
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date debe ser posterior a check_in_date")
        return self


class ReservationUpdate(BaseModel):
    apartment_id: Optional[PositiveInt] = None
    client_id: Optional[PositiveInt] = None
    client_name: Optional[constr(strip_whitespace=True, max_length=150)] = None
    client_email: Optional[EmailStr] = None
    client_phone: Optional[constr(strip_whitespace=True, max_length=40)] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    nights: Optional[PositiveInt] = None
    price_per_night: Optional[condecimal(gt=0, max_digits=12, decimal_places=2)] = None
    cleaning_fee: Optional[Money] = None
    other_expenses: Optional[Money] = None
    taxes: Optional[Money] = None
    parking_fee: Optional[Money] = None
    total_amount: Optional[Money] = None
    status: Optional[ReservationStatus] = None
    notes: Optional[str] = None

    # amount_paid / amount_due / payment_status se derivan de los pagos
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def validar_datos(cls, data):
        if isinstance(data, dict) and data:
            return data
        raise ValueError("Se requiere al menos un campo para actualizar")

    @field_validator("check_in_date", "check_out_date", mode="before")
    @classmethod
    def _parse_dates(cls, value):
        return parse_reservation_date(value)

    @model_validator(mode="after")
    def validar_fechas(self):
        if self.check_in_date and self.check_out_date and self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date debe ser posterior a check_in_date")
        return self


class ReservationRead(ReservationBase):
    id: int
    client_email: Optional[str] = None
    nights: int
    price_per_night: Money
    cleaning_fee: Money
    other_expenses: Money
    taxes: Money
    parking_fee: Money
    total_amount: Money
    amount_paid: Money
    amount_due: Money
    status: ReservationStatus
    payment_status: PaymentStatus
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PdfResponse(BaseModel):
    message: str
    pdf_path: str
