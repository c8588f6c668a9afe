"""
Scheduler de transiciones de estado de reservas
- Barrido diario (CronTrigger, por defecto 00:00 hora del negocio)
- Ejecutable a mano (POST /api/cron/update-reservation-statuses)
- Un solo barrido a la vez: una invocación concurrente se rechaza, no se intercala

Máquina de estados que maneja el scheduler:
    confirmed  -> checked_in   (hoy == check_in_date)
    checked_in -> checked_out  (hoy == check_out_date)
pending lo maneja el negocio; checked_out es terminal.
"""

import threading
from datetime import date
from typing import Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.exc import SQLAlchemyError

import config
from database.conexion import SessionLocal
from models.reservation import ReservationStatus, STATUS_ORDER
from services.email_service import EmailService
from services.errors import NotificationError, PersistenceError, SweepInProgressError
from services.reservation_store import ReservationStore
from utils.logging_utils import get_logger, log_event
from utils.timezone import BUSINESS_TZ, get_business_today

logger = get_logger(__name__)

JOB_ID = "reservation_status_update"


def _as_date(value) -> date:
    # datetime es subclase de date: se normaliza a fecha de calendario
    if hasattr(value, "date") and callable(value.date):
        return value.date()
    return value


def resolve_transition(status: str, check_in_date, check_out_date, today: date) -> Optional[str]:
    """
    Estado siguiente para una reserva en la fecha `today`, o None si no corresponde moverla.
    Un solo paso por barrido y nunca hacia atrás.
    """
    if status == ReservationStatus.CONFIRMED.value and _as_date(check_in_date) == today:
        target = ReservationStatus.CHECKED_IN.value
    elif status == ReservationStatus.CHECKED_IN.value and _as_date(check_out_date) == today:
        target = ReservationStatus.CHECKED_OUT.value
    else:
        return None
    if STATUS_ORDER[target] <= STATUS_ORDER[status]:
        return None
    return target


class ReservationStatusScheduler:
    """
    Servicio con ciclo de vida explícito (start/stop/run_once).

    Args:
        session_factory: crea sesiones de base de datos (SessionLocal)
        notifier: objeto con send_status_change_notification(reservation, previous_status)
        clock: devuelve la fecha de calendario "de hoy"
    """

    def __init__(
        self,
        session_factory=SessionLocal,
        notifier=None,
        clock: Callable[[], date] = get_business_today,
        hour: int = config.SCHEDULER_CRON_HOUR,
        minute: int = config.SCHEDULER_CRON_MINUTE,
        timezone=BUSINESS_TZ,
    ):
        self.session_factory = session_factory
        self.notifier = notifier if notifier is not None else EmailService()
        self.clock = clock
        self.hour = hour
        self.minute = minute
        self.timezone = timezone
        self._scheduler: Optional[BackgroundScheduler] = None
        self._sweep_lock = threading.Lock()

    # ========== CICLO DE VIDA ==========

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        if self.running:
            logger.info("Scheduler de estados ya estaba iniciado")
            return
        scheduler = BackgroundScheduler(timezone=self.timezone)
        scheduler.add_job(
            self._scheduled_run,
            trigger=CronTrigger(hour=self.hour, minute=self.minute, timezone=self.timezone),
            id=JOB_ID,
            name="Daily reservation status update",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Cron de actualización de estados programado (%02d:%02d)", self.hour, self.minute)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Cron de actualización de estados detenido")

    def _scheduled_run(self) -> None:
        logger.info("Ejecutando actualización automática de estados...")
        try:
            self.run_once()
        except SweepInProgressError:
            logger.warning("Barrido programado omitido: ya hay uno en ejecución")
        except PersistenceError:
            logger.exception("Barrido programado abortado por error de base de datos")

    # ========== BARRIDO ==========

    def run_once(self, usuario: str = "scheduler") -> Dict[str, object]:
        """
        Ejecuta un barrido completo. Idempotente en el mismo día.

        Returns:
            {"updated": cantidad, "message": resumen}

        Raises:
            SweepInProgressError: si otro barrido está corriendo
            PersistenceError: si falla la base de datos
        """
        if not self._sweep_lock.acquire(blocking=False):
            raise SweepInProgressError("A reservation status update is already running")
        try:
            today = self.clock()
            db = self.session_factory()
            try:
                updated = self._sweep(db, today)
            finally:
                db.close()
        finally:
            self._sweep_lock.release()

        message = f"Updated {updated} reservations"
        log_event("status_sweep", usuario, "Actualizar estados", f"fecha={today.isoformat()}, {message}")
        return {"updated": updated, "message": message}

    def _sweep(self, db, today: date) -> int:
        try:
            candidates = [
                (r.id, r.status, r.check_in_date, r.check_out_date)
                for r in ReservationStore.get_reservations_for_status_update(db)
            ]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Error buscando reservas para actualizar: {e}") from e
        logger.info("Encontradas %s reservas para posible actualización", len(candidates))

        updated = 0
        for reservation_id, previous_status, check_in, check_out in candidates:
            new_status = resolve_transition(previous_status, check_in, check_out, today)
            if new_status is None:
                continue

            try:
                changed = ReservationStore.transition_status(db, reservation_id, previous_status, new_status)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(f"Error actualizando estado de reserva {reservation_id}: {e}") from e

            if not changed:
                # Otro proceso la movió entre la lectura y el update
                continue

            updated += 1
            log_event(
                "status_change", "scheduler", "Cambio de estado",
                f"reservation_id={reservation_id}, {previous_status} -> {new_status}",
            )
            self._notify(db, reservation_id, previous_status)

        return updated

    def _notify(self, db, reservation_id: int, previous_status: str) -> None:
        try:
            reservation = ReservationStore.get_reservation_by_id(db, reservation_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Error leyendo reserva {reservation_id}: {e}") from e
        if reservation is None:
            return
        try:
            self.notifier.send_status_change_notification(reservation, previous_status)
        except NotificationError as e:
            logger.error("Notificación de cambio de estado fallida para reserva %s: %s", reservation_id, e)
            log_event("notification", "scheduler", "Error notificando estado", f"reservation_id={reservation_id}")
        except Exception:
            logger.exception("Error inesperado notificando cambio de estado de reserva %s", reservation_id)
            log_event("notification", "scheduler", "Error notificando estado", f"reservation_id={reservation_id}")
