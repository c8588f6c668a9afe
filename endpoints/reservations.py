"""
Endpoints de reservas y de sus pagos
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.orm import Session

from database import conexion
from models.reservation import ReservationStatus
from schemas.auth import AuthenticatedUser
from schemas.reservations import ReservationCreate, ReservationUpdate, ReservationRead, PdfResponse
from schemas.reservation_payments import RegisterPaymentRequest, ReservationPaymentRead
from services.reconciliation_service import ReconciliationService
from services.reservation_service import ReservationService
from services.reservation_store import PaymentStore
from utils.dependencies import get_current_user, get_reconciliation_service, get_reservation_service


router = APIRouter(prefix="/reservations", tags=["Reservas"])


@router.get("", response_model=List[ReservationRead])
def listar_reservas(
    start_date: Optional[date] = Query(None, description="check_in_date >= start_date"),
    end_date: Optional[date] = Query(None, description="check_out_date <= end_date"),
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    client_name: Optional[str] = Query(None, min_length=1),
    client_email: Optional[str] = Query(None, min_length=3),
    db: Session = Depends(conexion.get_db),
    service: ReservationService = Depends(get_reservation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return service.list_reservations(
        db,
        start_date=start_date,
        end_date=end_date,
        status=status_filter.value if status_filter else None,
        client_name=client_name,
        client_email=client_email,
    )


@router.get("/{reservation_id}", response_model=ReservationRead)
def obtener_reserva(
    reservation_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
    service: ReservationService = Depends(get_reservation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return service.get_reservation(db, reservation_id)


@router.post("", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
def crear_reserva(
    reserva: ReservationCreate,
    db: Session = Depends(conexion.get_db),
    service: ReservationService = Depends(get_reservation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return service.create_reservation(db, reserva.model_dump(), usuario=current_user.username)


@router.put("/{reservation_id}", response_model=ReservationRead)
def actualizar_reserva(
    cambios: ReservationUpdate,
    reservation_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
    service: ReservationService = Depends(get_reservation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return service.update_reservation(
        db, reservation_id, cambios.model_dump(exclude_unset=True), usuario=current_user.username
    )


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def eliminar_reserva(
    reservation_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
    service: ReservationService = Depends(get_reservation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    service.delete_reservation(db, reservation_id, usuario=current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ========== PAGOS DE LA RESERVA ==========

@router.post("/{reservation_id}/payments", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
def registrar_pago(
    pago: RegisterPaymentRequest,
    reservation_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
    reconciliation: ReconciliationService = Depends(get_reconciliation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Registra un pago y devuelve la reserva con amount_paid/amount_due/payment_status actualizados"""
    return reconciliation.register_payment(
        db,
        reservation_id,
        pago.amount,
        pago.payment_method,
        payment_reference=pago.payment_reference,
        notes=pago.notes,
        payment_date=pago.payment_date,
        usuario=current_user.username,
    )


@router.get("/{reservation_id}/payments", response_model=List[ReservationPaymentRead])
def listar_pagos_de_reserva(
    reservation_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
    service: ReservationService = Depends(get_reservation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    service.get_reservation(db, reservation_id)
    return PaymentStore.get_payments_by_reservation(db, reservation_id)


@router.post("/{reservation_id}/pdf", response_model=PdfResponse)
def generar_pdf(
    reservation_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
    service: ReservationService = Depends(get_reservation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    pdf_path = service.generate_and_send_pdf(db, reservation_id)
    return PdfResponse(message="PDF generated and sent", pdf_path=pdf_path)
