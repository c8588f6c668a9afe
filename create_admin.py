"""
Script para crear el primer administrador del backoffice
Ejecutar: python create_admin.py [--username admin] [--email admin@example.com]
La contraseña se pide por consola (o ADMIN_PASSWORD en el entorno).
"""
import argparse
import getpass
import os
import sys

from sqlalchemy.exc import SQLAlchemyError

from database.conexion import SessionLocal, engine, Base
import models  # registra las tablas
from models.admin import Admin
from utils.auth import get_password_hash

MIN_PASSWORD_LENGTH = 8


def crear_admin(username: str, email: str, password: str, db=None) -> Admin:
    """Crea el admin si no existe; si ya existe lo devuelve sin tocarlo"""
    own_session = db is None
    db = db or SessionLocal()
    try:
        existente = db.query(Admin).filter(Admin.username == username).first()
        if existente:
            print(f"⚠️  Ya existe el administrador '{username}' (ID: {existente.id})")
            return existente

        admin = Admin(
            username=username,
            email=email or None,
            hashed_password=get_password_hash(password),
            active=True,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        print(f"✅ Administrador creado: {admin.username} (ID: {admin.id})")
        print("🔐 Puede iniciar sesión en POST /api/auth/login")
        return admin
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        if own_session:
            db.close()


def _pedir_password() -> str:
    password = os.getenv("ADMIN_PASSWORD")
    if password:
        return password
    while True:
        password = getpass.getpass(f"Password (mínimo {MIN_PASSWORD_LENGTH} caracteres): ").strip()
        if len(password) >= MIN_PASSWORD_LENGTH:
            return password
        print(f"❌ La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Crear administrador del backoffice")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--email", default="")
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    password = _pedir_password()
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"❌ La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres")
        return 1
    try:
        crear_admin(args.username, args.email, password)
    except SQLAlchemyError as e:
        print(f"❌ Error al crear administrador: {str(e)}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
