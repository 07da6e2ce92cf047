# Nombre de archivo: app_config.py
# Ubicación de archivo: core/services/app_config.py
# Descripción: Documento de configuración compartida (URL confiable de la planilla publicada)

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import get_settings
from core.errors import ConfigError, TransientWriteError
from core.services.users import require_admin
from db.models.coordinacion import AppConfig, UserProfile

logger = logging.getLogger(__name__)

CONFIG_KEY = "general"


def get_sheet_config(session: Session) -> Optional[AppConfig]:
    return session.get(AppConfig, CONFIG_KEY)


def resolve_sheet_url(session: Session, override: Optional[str] = None) -> Optional[str]:
    """URL a sincronizar: la explícita, la guardada o la del entorno, en ese orden."""
    if override and override.strip():
        return override.strip()
    config = get_sheet_config(session)
    if config is not None and config.sheet_url:
        return config.sheet_url
    return get_settings().ingest.default_sheet_url


def set_sheet_url(session: Session, profile: Optional[UserProfile], url: str) -> AppConfig:
    """Guarda la URL de la planilla publicada con metadatos de auditoría (solo admin)."""
    admin = require_admin(profile)
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError("La URL de la planilla debe ser http(s)")

    config = get_sheet_config(session)
    if config is None:
        config = AppConfig(key=CONFIG_KEY)
        session.add(config)
    config.sheet_url = url
    config.updated_by = admin.email or admin.uid
    config.updated_at = datetime.now(timezone.utc)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("action=set_sheet_url error=%s", exc)
        raise TransientWriteError("No se pudo guardar la configuración") from exc
    logger.info("action=set_sheet_url updated_by=%s", config.updated_by)
    return config
