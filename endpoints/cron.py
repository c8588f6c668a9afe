"""
Disparo manual del barrido de estados (mismo código que el cron diario)
"""
from fastapi import APIRouter, Depends

from schemas.auth import AuthenticatedUser
from services.status_scheduler import ReservationStatusScheduler
from utils.dependencies import get_current_user, get_status_scheduler


router = APIRouter(prefix="/cron", tags=["Cron"])


@router.post("/update-reservation-statuses")
def actualizar_estados(
    scheduler: ReservationStatusScheduler = Depends(get_status_scheduler),
    current_user: AuthenticatedUser = Depends(get_current_user),
):
    """
    Ejecuta el barrido ahora. Si ya hay uno corriendo responde 409.
    """
    result = scheduler.run_once(usuario=current_user.username)
    return {"success": True, **result}
