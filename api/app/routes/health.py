# Nombre de archivo: health.py
# Ubicación de archivo: api/app/routes/health.py
# Descripción: Endpoints de health, versión de build y verificación de DB

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import get_settings
from db.session import get_session

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    return {
        "status": "ok",
        "service": "api",
        "time": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/version")
def health_version():
    return {"status": "ok", "service": "api", "version": get_settings().build_version}


@router.get("/db-check")
def db_check(session: Session = Depends(get_session)):
    """Realiza un SELECT 1 contra la base configurada."""
    try:
        session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("action=db_check error=%s", exc)
        return {"db": "error", "detail": str(exc)}
    return {"db": "ok", "dialect": session.get_bind().dialect.name}
