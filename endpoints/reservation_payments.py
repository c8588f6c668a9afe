"""
Endpoints de pagos de reservas como recurso propio
Toda escritura pasa por el motor de conciliación
"""
from typing import List

from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.orm import Session

from database import conexion
from schemas.auth import AuthenticatedUser
from schemas.reservation_payments import (
    ReservationPaymentCreate, ReservationPaymentUpdate, ReservationPaymentRead,
)
from services.errors import NotFoundError
from services.reconciliation_service import ReconciliationService
from services.reservation_store import PaymentStore
from utils.dependencies import get_current_user, get_reconciliation_service


router = APIRouter(prefix="/reservation-payments", tags=["Pagos de reservas"])


@router.get("", response_model=List[ReservationPaymentRead])
def listar_pagos(
    db: Session = Depends(conexion.get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return PaymentStore.get_all_payments(db)


@router.get("/{payment_id}", response_model=ReservationPaymentRead)
def obtener_pago(
    payment_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    payment = PaymentStore.get_payment_by_id(db, payment_id)
    if payment is None:
        raise NotFoundError("Reservation payment", payment_id)
    return payment


@router.post("", response_model=ReservationPaymentRead, status_code=status.HTTP_201_CREATED)
def crear_pago(
    pago: ReservationPaymentCreate,
    db: Session = Depends(conexion.get_db),
    reconciliation: ReconciliationService = Depends(get_reconciliation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return reconciliation.create_payment(db, pago.model_dump(), usuario=current_user.username)


@router.put("/{payment_id}", response_model=ReservationPaymentRead)
def actualizar_pago(
    cambios: ReservationPaymentUpdate,
    payment_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
    reconciliation: ReconciliationService = Depends(get_reconciliation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return reconciliation.update_payment(
        db, payment_id, cambios.model_dump(exclude_unset=True), usuario=current_user.username
    )


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def eliminar_pago(
    payment_id: int = Path(..., gt=0),
    db: Session = Depends(conexion.get_db),
    reconciliation: ReconciliationService = Depends(get_reconciliation_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    reconciliation.delete_payment(db, payment_id, usuario=current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
