"""
Dependencias de autenticación
"""
from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from database import conexion
from models.admin import Admin
from schemas.auth import AuthenticatedUser, TokenData
from services.email_service import EmailService
from services.monthly_summary_service import MonthlySummaryService
from services.pdf_service import PdfService
from services.reconciliation_service import ReconciliationService
from services.reservation_service import ReservationService
from services.status_scheduler import ReservationStatusScheduler
from utils.auth import verify_token


# Esquema OAuth2 para obtener el token del header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(conexion.get_db),
) -> AuthenticatedUser:
    """
    Obtiene el administrador autenticado desde el token JWT

    Raises:
        HTTPException: 401 si el token es inválido o el admin no existe, 403 si está desactivado
    """
    payload = verify_token(token)
    token_data = TokenData(username=payload.get("sub"), user_id=payload.get("user_id"))

    admin = db.query(Admin).filter(
        Admin.id == token_data.user_id,
        Admin.username == token_data.username,
    ).first()

    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not admin.active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    return AuthenticatedUser(id=admin.id, username=admin.username)


# ========== SERVICIOS ==========
# Instancias compartidas por proceso; los tests las reemplazan con app.dependency_overrides

@lru_cache(maxsize=None)
def get_notifier() -> EmailService:
    return EmailService()


def get_reconciliation_service(notifier: EmailService = Depends(get_notifier)) -> ReconciliationService:
    return ReconciliationService(notifier=notifier)


def get_reservation_service(
    notifier: EmailService = Depends(get_notifier),
    reconciliation: ReconciliationService = Depends(get_reconciliation_service),
) -> ReservationService:
    return ReservationService(notifier=notifier, pdf_service=PdfService(), reconciliation=reconciliation)


def get_summary_service(notifier: EmailService = Depends(get_notifier)) -> MonthlySummaryService:
    return MonthlySummaryService(notifier=notifier, pdf_service=PdfService())


def get_status_scheduler(request: Request) -> ReservationStatusScheduler:
    """El scheduler vive en app.state (uno por proceso, creado en main)"""
    return request.app.state.status_scheduler
