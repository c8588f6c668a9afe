"""
Fixtures compartidas: SQLite en memoria, notificador falso y fábrica de reservas
"""

import os
import sys
from pathlib import Path

# Entorno de test antes de importar config
os.environ["DATABASE_URL"] = os.getenv("TEST_DATABASE_URL", "sqlite://")
os.environ["EMAIL_HOST"] = ""
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("LOG_FILE", str(Path(__file__).parent / "test_logs.txt"))

# Agregar directorio raíz al PYTHONPATH para imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from datetime import date
from decimal import Decimal

from database.conexion import Base, SessionLocal, engine
import models  # registra las tablas
from models.reservation import Reservation
from services.errors import NotificationError


class FakeNotifier:
    """Registra cada envío; con fail=True todos los envíos lanzan NotificationError"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def _record(self, kind, *args):
        self.calls.append((kind,) + args)
        if self.fail:
            raise NotificationError(f"{kind} delivery failed")
        return True

    def of(self, kind):
        return [call for call in self.calls if call[0] == kind]

    def send_confirmation_email(self, reservation):
        return self._record("confirmation", reservation.id)

    def send_payment_notification(self, reservation, amount, is_complete):
        return self._record("payment", reservation.id, amount, is_complete)

    def send_status_change_notification(self, reservation, previous_status):
        return self._record("status_change", reservation.id, previous_status, reservation.status)

    def send_reservation_pdf(self, reservation, pdf_path):
        return self._record("pdf", reservation.id, pdf_path)

    def send_monthly_summary_email(self, to, pdf_bytes, month, year):
        return self._record("monthly_summary", to, month, year)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def failing_notifier():
    return FakeNotifier(fail=True)


@pytest.fixture
def make_reservation(db_session):
    """Inserta una reserva directamente (sin pasar por los servicios)"""

    def _make(**overrides):
        fields = {
            "apartment_id": 1,
            "client_name": "Jane Doe",
            "client_email": "jane@example.com",
            "check_in_date": date(2025, 3, 10),
            "check_out_date": date(2025, 3, 15),
            "nights": 5,
            "price_per_night": Decimal("200.00"),
            "total_amount": Decimal("1000.00"),
            "amount_paid": Decimal("0.00"),
            "amount_due": Decimal("1000.00"),
            "status": "confirmed",
            "payment_status": "pending",
        }
        fields.update(overrides)
        reservation = Reservation(**fields)
        db_session.add(reservation)
        db_session.commit()
        db_session.refresh(reservation)
        return reservation

    return _make
