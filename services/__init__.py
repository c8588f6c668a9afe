"""
Servicios de negocio: reservas, conciliación de pagos, scheduler de estados y reportes
"""

from .errors import (
    BookingError,
    NotFoundError,
    ValidationError,
    PersistenceError,
    NotificationError,
    SweepInProgressError,
)
from .reservation_store import ReservationStore, PaymentStore
from .reconciliation_service import ReconciliationService, compute_payment_summary
from .status_scheduler import ReservationStatusScheduler, resolve_transition
from .reservation_service import ReservationService
from .monthly_summary_service import MonthlySummaryService

__all__ = [
    "BookingError",
    "NotFoundError",
    "ValidationError",
    "PersistenceError",
    "NotificationError",
    "SweepInProgressError",
    "ReservationStore",
    "PaymentStore",
    "ReconciliationService",
    "compute_payment_summary",
    "ReservationStatusScheduler",
    "resolve_transition",
    "ReservationService",
    "MonthlySummaryService",
]
