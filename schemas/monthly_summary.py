from typing import List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, condecimal

from schemas.reservations import ReservationRead
from schemas.reservation_payments import ReservationPaymentRead


class GenerateSummaryRequest(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)


class SendSummaryRequest(BaseModel):
    email: EmailStr


class MonthlySummaryRead(BaseModel):
    id: int
    month: int
    year: int
    total_reservations: int
    total_payments: int
    total_revenue: condecimal(max_digits=14, decimal_places=2)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SummaryDetailsRead(BaseModel):
    summary: MonthlySummaryRead
    reservations: List[ReservationRead]
    payments: List[ReservationPaymentRead]
