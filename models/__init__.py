"""
Archivo de inicialización del paquete models.
Expone todas las clases para que SQLAlchemy (Base.metadata) las detecte al importar 'models'.
"""

# 1. Autenticación
from .admin import Admin

# 2. Reservas y pagos
from .reservation import Reservation, ReservationStatus, PaymentStatus, STATUS_ORDER
from .reservation_payment import ReservationPayment, PaymentMethod, PAYMENT_METHODS

# 3. Reportes
from .monthly_summary import MonthlySummary

__all__ = [
    "Admin",
    "Reservation", "ReservationStatus", "PaymentStatus", "STATUS_ORDER",
    "ReservationPayment", "PaymentMethod", "PAYMENT_METHODS",
    "MonthlySummary",
]
