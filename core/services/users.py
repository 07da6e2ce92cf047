# Nombre de archivo: users.py
# Ubicación de archivo: core/services/users.py
# Descripción: Identidad del actor autenticado y perfiles de usuario con rol

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import PermissionDeniedError, TransientWriteError
from db.models.coordinacion import UserProfile, UserRole

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = "Anónimo"


@dataclass(frozen=True, slots=True)
class Actor:
    """Usuario identificado por el proveedor de autenticación."""

    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None

    @property
    def name(self) -> str:
        return self.display_name or ANONYMOUS_NAME


def require_actor(actor: Optional[Actor]) -> Actor:
    if actor is None or not actor.uid or not actor.uid.strip():
        raise PermissionDeniedError("Debés iniciar sesión para realizar esta acción")
    return actor


def ensure_profile(session: Session, actor: Actor) -> UserProfile:
    """Obtiene el perfil del actor o lo crea con rol 'user' en su primer ingreso."""
    actor = require_actor(actor)
    profile = session.get(UserProfile, actor.uid)
    if profile is not None:
        return profile
    profile = UserProfile(
        uid=actor.uid,
        email=actor.email or "",
        display_name=actor.display_name or "Usuario Nuevo",
        role=UserRole.USER.value,
    )
    session.add(profile)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("action=ensure_profile uid=%s error=%s", actor.uid, exc)
        raise TransientWriteError("No se pudo crear el perfil") from exc
    logger.info("action=ensure_profile created uid=%s", actor.uid)
    return profile


def require_admin(profile: Optional[UserProfile]) -> UserProfile:
    if profile is None or not profile.is_admin:
        raise PermissionDeniedError("Acceso restringido a administradores")
    return profile
