"""
Endpoints de autenticación de administradores
"""
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

import config
from database import conexion
from models.admin import Admin
from schemas.auth import AuthenticatedUser, LoginRequest, Token
from utils.auth import create_access_token, verify_password
from utils.dependencies import get_current_user
from utils.logging_utils import log_event
from utils.rate_limiter import limiter
from utils.timezone import utc_now


router = APIRouter(prefix="/auth", tags=["Autenticación"])


@router.post("/login", response_model=Token)
@limiter.limit(config.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    credentials: LoginRequest,
    db: Session = Depends(conexion.get_db),
):
    """
    Inicia sesión y retorna el token de acceso
    """
    admin = db.query(Admin).filter(Admin.username == credentials.username).first()

    if not admin or not verify_password(credentials.password, admin.hashed_password):
        log_event("auth", credentials.username, "Login fallido", "")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not admin.active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    try:
        admin.last_login = utc_now()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_event("auth", admin.username, "Error registrando last_login", f"error={str(e)}")

    expires = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token({"sub": admin.username, "user_id": admin.id}, expires_delta=expires)
    log_event("auth", admin.username, "Login exitoso", "")
    return Token(access_token=token, expires_in=int(expires.total_seconds()))


@router.get("/me", response_model=AuthenticatedUser)
def me(current_user: AuthenticatedUser = Depends(get_current_user)):
    return current_user
