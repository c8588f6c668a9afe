"""
Errores de dominio del núcleo de reservas/pagos.
Los endpoints no los atrapan: utils/error_handlers.py los traduce a respuestas HTTP.
"""


class BookingError(Exception):
    """Base de todos los errores de negocio"""


class NotFoundError(BookingError):
    """La reserva, el pago o el resumen no existe"""

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} {entity_id} not found"
        super().__init__(message)


class ValidationError(BookingError):
    """Entrada mal formada; se detecta antes de cualquier escritura"""


class PersistenceError(BookingError):
    """Falla del almacenamiento (conexión, constraint). No se reintenta."""


class NotificationError(BookingError):
    """Falla del envío de email o de la generación del PDF"""


class SweepInProgressError(BookingError):
    """Ya hay un barrido de estados en ejecución"""
