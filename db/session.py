# Nombre de archivo: session.py
# Ubicación de archivo: db/session.py
# Descripción: Engine y fábrica de sesiones SQLAlchemy para la API

from __future__ import annotations

from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from core.config import get_settings

engine = create_engine(get_settings().database.url, pool_pre_ping=True, pool_recycle=1800)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def get_session() -> Iterator[Session]:
    """Dependencia FastAPI: una sesión por request (el servicio decide commit/rollback)."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_session_factory() -> sessionmaker:
    """Dependencia para conexiones largas (WebSocket): abren una sesión corta por consulta."""
    return SessionLocal
