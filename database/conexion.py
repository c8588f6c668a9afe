from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

import config

DATABASE_URL = config.DATABASE_URL


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str):
    # SQLite en memoria (tests): una sola conexión compartida entre hilos
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        # ON DELETE CASCADE de reservation_payments necesita FKs activas
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine
    return create_engine(url, pool_pre_ping=True)


engine = _build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# ✅ create_all se hace desde main.py luego de importar los modelos


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ========== GATEWAY SQL PARAMETRIZADO ==========

def query(db: Session, statement: str, parameters: Optional[Dict[str, Any]] = None) -> List[RowMapping]:
    """
    Ejecuta una sentencia SQL parametrizada y devuelve las filas como mappings.
    Los valores siempre viajan como parámetros (:nombre), nunca interpolados.
    """
    result = db.execute(text(statement), parameters or {})
    if not result.returns_rows:
        return []
    return list(result.mappings().all())


def execute(db: Session, statement: str, parameters: Optional[Dict[str, Any]] = None) -> int:
    """Ejecuta DML parametrizado y devuelve la cantidad de filas afectadas"""
    result = db.execute(text(statement), parameters or {})
    return result.rowcount
