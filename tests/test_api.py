"""
Tests HTTP de la API (/api/...) con TestClient y dependencias reemplazadas
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from fastapi.testclient import TestClient

from main import app
from models.admin import Admin
from models.reservation_payment import ReservationPayment
from services.pdf_service import PdfService
from services.reconciliation_service import ReconciliationService
from services.reservation_service import ReservationService
from services.monthly_summary_service import MonthlySummaryService
from services.status_scheduler import ReservationStatusScheduler
from utils.auth import create_access_token, get_password_hash
from utils.dependencies import get_notifier, get_reservation_service, get_summary_service

TODAY = date(2025, 3, 10)
PASSWORD = "supersecret123"


@pytest.fixture
def client(db_session, notifier, tmp_path):
    pdf_service = PdfService(output_dir=str(tmp_path))
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_reservation_service] = lambda: ReservationService(
        notifier=notifier, pdf_service=pdf_service, reconciliation=ReconciliationService(notifier=notifier)
    )
    app.dependency_overrides[get_summary_service] = lambda: MonthlySummaryService(
        notifier=notifier, pdf_service=pdf_service
    )
    original_scheduler = app.state.status_scheduler
    app.state.status_scheduler = ReservationStatusScheduler(notifier=notifier, clock=lambda: TODAY)
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        app.state.status_scheduler = original_scheduler


@pytest.fixture
def admin(db_session):
    admin = Admin(username="admin", email="admin@example.com", hashed_password=get_password_hash(PASSWORD))
    db_session.add(admin)
    db_session.commit()
    db_session.refresh(admin)
    return admin


@pytest.fixture
def auth_headers(admin):
    token = create_access_token({"sub": admin.username, "user_id": admin.id})
    return {"Authorization": f"Bearer {token}"}


def _reservation_payload(**overrides):
    payload = {
        "apartment_id": 7,
        "client_name": "Jane Doe",
        "client_email": "jane@example.com",
        "check_in_date": "04-01-2025 15:00",
        "check_out_date": "2025-04-04",
        "price_per_night": 150,
        "cleaning_fee": 80,
        "taxes": 45.5,
        "parking_fee": 20,
    }
    payload.update(overrides)
    return payload


def _create_reservation(client, headers, **overrides):
    response = client.post("/api/reservations", json=_reservation_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestAuth:

    def test_sin_token(self, client):
        assert client.get("/api/reservations").status_code == 401

    def test_token_invalido(self, client):
        response = client.get("/api/reservations", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_login_y_me(self, client, admin):
        response = client.post("/api/auth/login", json={"username": "admin", "password": PASSWORD})
        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] > 0

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.status_code == 200
        assert me.json() == {"id": admin.id, "username": "admin"}

    def test_login_password_incorrecto(self, client, admin):
        response = client.post("/api/auth/login", json={"username": "admin", "password": "wrong-password"})
        assert response.status_code == 401

    def test_admin_inactivo(self, client, db_session, admin, auth_headers):
        admin.active = False
        db_session.commit()
        assert client.get("/api/auth/me", headers=auth_headers).status_code == 403


class TestReservas:

    def test_crear_y_obtener(self, client, auth_headers, notifier):
        data = _create_reservation(client, auth_headers)

        assert data["check_in_date"] == "2025-04-01"
        assert data["nights"] == 3
        assert Decimal(data["total_amount"]) == Decimal("595.50")
        assert Decimal(data["amount_due"]) == Decimal("595.50")
        assert data["payment_status"] == "pending"
        assert data["status"] == "pending"
        assert notifier.of("confirmation") == [("confirmation", data["id"])]

        response = client.get(f"/api/reservations/{data['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["client_name"] == "Jane Doe"

    def test_campos_derivados_rechazados(self, client, auth_headers):
        response = client.post(
            "/api/reservations", json=_reservation_payload(amount_paid=100), headers=auth_headers
        )
        assert response.status_code == 422

        data = _create_reservation(client, auth_headers)
        response = client.put(
            f"/api/reservations/{data['id']}", json={"payment_status": "complete"}, headers=auth_headers
        )
        assert response.status_code == 422

    def test_fechas_invertidas(self, client, auth_headers):
        response = client.post(
            "/api/reservations",
            json=_reservation_payload(check_in_date="2025-04-05", check_out_date="2025-04-01"),
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_listado_con_filtros(self, client, auth_headers):
        _create_reservation(client, auth_headers, client_name="Alice")
        _create_reservation(client, auth_headers, client_name="Bob", status="confirmed")

        response = client.get("/api/reservations", params={"status": "confirmed"}, headers=auth_headers)
        assert response.status_code == 200
        assert [r["client_name"] for r in response.json()] == ["Bob"]

        response = client.get("/api/reservations", params={"client_name": "ali"}, headers=auth_headers)
        assert [r["client_name"] for r in response.json()] == ["Alice"]

    def test_editar_estado_notifica(self, client, auth_headers, notifier):
        data = _create_reservation(client, auth_headers)

        response = client.put(
            f"/api/reservations/{data['id']}", json={"status": "confirmed"}, headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert notifier.of("status_change") == [("status_change", data["id"], "pending", "confirmed")]

    def test_editar_sin_campos(self, client, auth_headers):
        data = _create_reservation(client, auth_headers)
        response = client.put(f"/api/reservations/{data['id']}", json={}, headers=auth_headers)
        assert response.status_code == 422

    def test_eliminar(self, client, auth_headers):
        data = _create_reservation(client, auth_headers)
        assert client.delete(f"/api/reservations/{data['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/api/reservations/{data['id']}", headers=auth_headers).status_code == 404

    def test_inexistente(self, client, auth_headers):
        response = client.get("/api/reservations/99999", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Reservation 99999 not found"

    def test_pdf(self, client, auth_headers, notifier):
        data = _create_reservation(client, auth_headers)
        response = client.post(f"/api/reservations/{data['id']}/pdf", headers=auth_headers)
        assert response.status_code == 200
        assert Path(response.json()["pdf_path"]).exists()
        assert len(notifier.of("pdf")) == 1


class TestPagosDeReserva:

    def test_parcial_y_luego_completo(self, client, auth_headers, notifier):
        data = _create_reservation(client, auth_headers, total_amount=1000)
        url = f"/api/reservations/{data['id']}/payments"

        response = client.post(url, json={"amount": 300, "payment_method": "cash"}, headers=auth_headers)
        assert response.status_code == 201
        body = response.json()
        assert Decimal(body["amount_paid"]) == Decimal("300")
        assert Decimal(body["amount_due"]) == Decimal("700")
        assert body["payment_status"] == "partial"

        response = client.post(
            url,
            json={"amount": 700, "payment_method": "transfer", "payment_reference": "TRX-9"},
            headers=auth_headers,
        )
        body = response.json()
        assert Decimal(body["amount_due"]) == Decimal("0")
        assert body["payment_status"] == "complete"
        assert [call[3] for call in notifier.of("payment")] == [False, True]

        payments = client.get(url, headers=auth_headers).json()
        assert [Decimal(p["amount"]) for p in payments] == [Decimal("700"), Decimal("300")]

    def test_reserva_inexistente(self, client, auth_headers, db_session):
        response = client.post(
            "/api/reservations/99999/payments",
            json={"amount": 100, "payment_method": "cash"},
            headers=auth_headers,
        )
        assert response.status_code == 404
        assert db_session.query(ReservationPayment).count() == 0

    @pytest.mark.parametrize("payload", [
        {"amount": 0, "payment_method": "cash"},
        {"amount": -10, "payment_method": "cash"},
        {"amount": 10, "payment_method": "bitcoin"},
        {"payment_method": "cash"},
    ])
    def test_pago_invalido(self, client, auth_headers, payload):
        data = _create_reservation(client, auth_headers)
        response = client.post(f"/api/reservations/{data['id']}/payments", json=payload, headers=auth_headers)
        assert response.status_code == 422

    def test_listar_pagos_de_reserva_inexistente(self, client, auth_headers):
        assert client.get("/api/reservations/99999/payments", headers=auth_headers).status_code == 404


class TestPagosComoRecurso:

    def test_crud(self, client, auth_headers):
        reservation = _create_reservation(client, auth_headers, total_amount=1000)

        response = client.post(
            "/api/reservation-payments",
            json={"reservation_id": reservation["id"], "amount": 400, "payment_method": "card"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        payment = response.json()
        assert payment["reservation_id"] == reservation["id"]
        assert payment["payment_method"] == "card"

        response = client.put(
            f"/api/reservation-payments/{payment['id']}", json={"amount": 1000}, headers=auth_headers
        )
        assert response.status_code == 200
        refreshed = client.get(f"/api/reservations/{reservation['id']}", headers=auth_headers).json()
        assert refreshed["payment_status"] == "complete"

        assert client.get("/api/reservation-payments", headers=auth_headers).json()[0]["id"] == payment["id"]

        response = client.delete(f"/api/reservation-payments/{payment['id']}", headers=auth_headers)
        assert response.status_code == 204
        refreshed = client.get(f"/api/reservations/{reservation['id']}", headers=auth_headers).json()
        assert refreshed["payment_status"] == "pending"
        assert Decimal(refreshed["amount_due"]) == Decimal("1000")

        assert client.get(f"/api/reservation-payments/{payment['id']}", headers=auth_headers).status_code == 404

    def test_no_se_mueve_de_reserva(self, client, auth_headers):
        reservation = _create_reservation(client, auth_headers)
        payment = client.post(
            "/api/reservation-payments",
            json={"reservation_id": reservation["id"], "amount": 10, "payment_method": "cash"},
            headers=auth_headers,
        ).json()

        response = client.put(
            f"/api/reservation-payments/{payment['id']}", json={"reservation_id": 2}, headers=auth_headers
        )
        assert response.status_code == 422

    def test_reserva_inexistente(self, client, auth_headers):
        response = client.post(
            "/api/reservation-payments",
            json={"reservation_id": 99999, "amount": 10, "payment_method": "cash"},
            headers=auth_headers,
        )
        assert response.status_code == 404


class TestCron:

    def test_actualiza_estados(self, client, auth_headers, make_reservation, notifier):
        make_reservation(status="confirmed", check_in_date=TODAY, check_out_date=TODAY + timedelta(days=2))
        make_reservation(status="pending", check_in_date=TODAY, check_out_date=TODAY + timedelta(days=2))

        response = client.post("/api/cron/update-reservation-statuses", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "updated": 1, "message": "Updated 1 reservations"}
        assert len(notifier.of("status_change")) == 1

    def test_barrido_en_curso(self, client, auth_headers):
        scheduler = app.state.status_scheduler
        scheduler._sweep_lock.acquire()
        try:
            response = client.post("/api/cron/update-reservation-statuses", headers=auth_headers)
        finally:
            scheduler._sweep_lock.release()
        assert response.status_code == 409
        assert response.json()["success"] is False


class TestResumenes:

    @pytest.fixture
    def con_pagos(self, db_session, make_reservation):
        reservation = make_reservation(check_in_date=date(2025, 3, 5), check_out_date=date(2025, 3, 8))
        db_session.add(ReservationPayment(
            reservation_id=reservation.id, amount=Decimal("250"), payment_method="cash",
            payment_date=datetime(2025, 3, 6, 10, 0),
        ))
        db_session.commit()
        return reservation

    def test_generar_y_consultar(self, client, auth_headers, con_pagos):
        response = client.post("/api/summaries/generate", json={"month": 3, "year": 2025}, headers=auth_headers)
        assert response.status_code == 200
        summary = response.json()
        assert summary["total_reservations"] == 1
        assert summary["total_payments"] == 1
        assert Decimal(summary["total_revenue"]) == Decimal("250")

        details = client.get("/api/summaries/2025/3", headers=auth_headers)
        assert details.status_code == 200
        assert len(details.json()["reservations"]) == 1
        assert len(details.json()["payments"]) == 1

    def test_mes_invalido(self, client, auth_headers):
        response = client.post("/api/summaries/generate", json={"month": 13, "year": 2025}, headers=auth_headers)
        assert response.status_code == 422

    def test_detalle_inexistente(self, client, auth_headers):
        assert client.get("/api/summaries/2025/7", headers=auth_headers).status_code == 404

    def test_pdf(self, client, auth_headers, con_pagos):
        response = client.get("/api/summaries/2025/3/pdf", headers=auth_headers)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_envio(self, client, auth_headers, con_pagos, notifier):
        response = client.post(
            "/api/summaries/2025/3/send", json={"email": "owner@example.com"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert notifier.of("monthly_summary") == [("monthly_summary", "owner@example.com", 3, 2025)]

    def test_volumen_de_ventas(self, client, auth_headers, con_pagos):
        response = client.get(
            "/api/summaries/sales-volume",
            params={"from": "2025-03-01", "to": "2025-03-31", "group_by": "day"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["series"] == [
            {"period": "2025-03-06", "total_revenue": 250.0, "total_payments": 1}
        ]

    def test_volumen_rango_invertido(self, client, auth_headers):
        response = client.get(
            "/api/summaries/sales-volume",
            params={"from": "2025-03-31", "to": "2025-03-01"},
            headers=auth_headers,
        )
        assert response.status_code == 400
