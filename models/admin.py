"""
Administradores del backoffice (identidad autenticada de la API)
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime

from database.conexion import Base
from utils.timezone import utc_now


class Admin(Base):
    """Tabla de administradores"""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(120), unique=True, nullable=True)
    hashed_password = Column(String(255), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Admin(id={self.id}, username='{self.username}')>"
