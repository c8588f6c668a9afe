"""
Resúmenes mensuales y volumen de ventas
"""
from datetime import date

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.orm import Session

from database import conexion
from schemas.auth import AuthenticatedUser
from schemas.monthly_summary import (
    GenerateSummaryRequest, MonthlySummaryRead, SendSummaryRequest, SummaryDetailsRead,
)
from services.monthly_summary_service import MonthlySummaryService
from utils.dependencies import get_current_user, get_summary_service


router = APIRouter(prefix="/summaries", tags=["Resúmenes"])


@router.post("/generate", response_model=MonthlySummaryRead)
def generar_resumen(
    periodo: GenerateSummaryRequest,
    db: Session = Depends(conexion.get_db),
    service: MonthlySummaryService = Depends(get_summary_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return service.generate_monthly_summary(db, periodo.month, periodo.year, usuario=current_user.username)


@router.get("/sales-volume")
def volumen_de_ventas(
    date_from: date = Query(..., alias="from"),
    date_to: date = Query(..., alias="to"),
    group_by: str = Query("month", pattern="^(day|month|year)$"),
    db: Session = Depends(conexion.get_db),
    service: MonthlySummaryService = Depends(get_summary_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return service.get_sales_volume(db, date_from, date_to, group_by)


@router.get("/{year}/{month}", response_model=SummaryDetailsRead)
def detalle_resumen(
    year: int = Path(..., ge=1900),
    month: int = Path(..., ge=1, le=12),
    db: Session = Depends(conexion.get_db),
    service: MonthlySummaryService = Depends(get_summary_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    return service.get_summary_details(db, month, year)


@router.get("/{year}/{month}/pdf")
def descargar_pdf(
    year: int = Path(..., ge=1900),
    month: int = Path(..., ge=1, le=12),
    db: Session = Depends(conexion.get_db),
    service: MonthlySummaryService = Depends(get_summary_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    pdf_bytes = service.generate_summary_pdf(db, month, year)
    filename = f"monthly-summary-{year}-{month:02d}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{year}/{month}/send")
def enviar_resumen(
    destino: SendSummaryRequest,
    year: int = Path(..., ge=1900),
    month: int = Path(..., ge=1, le=12),
    db: Session = Depends(conexion.get_db),
    service: MonthlySummaryService = Depends(get_summary_service),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    sent = service.send_summary_by_email(db, month, year, destino.email)
    if not sent:
        return {"success": False, "message": "Email delivery is disabled"}
    return {"success": True, "message": f"Summary {month:02d}/{year} sent to {destino.email}"}
