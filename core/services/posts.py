# Nombre de archivo: posts.py
# Ubicación de archivo: core/services/posts.py
# Descripción: Ciclo de vida de avisos (abierto → en_proceso → resuelto) y compromisos de asistencia

"""Servicio de ciclo de vida de avisos.

Estados:
- abierto: estado inicial al crear el aviso.
- en_proceso: tras el primer compromiso de asistencia; compromisos posteriores
  suman historial y asignados sin cambiar el estado.
- resuelto: terminal; lo fija el creador del aviso o un administrador.

El historial es un registro de auditoría de solo-agregado. La lista de
asignados es una membresía sin duplicados por uid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import (
    CoordinationError,
    InvalidCommitmentError,
    InvalidTransitionError,
    PermissionDeniedError,
    PostNotFoundError,
    TransientWriteError,
)
from core.services.users import Actor, require_actor
from db.models.coordinacion import (
    HistoryAction,
    Post,
    PostCategory,
    PostStatus,
    PostType,
    UserProfile,
)

logger = logging.getLogger(__name__)


# =============================================================================
# DATACLASSES
# =============================================================================


@dataclass
class NewPost:
    """Datos del formulario de alta de un aviso."""

    type: PostType
    category: PostCategory
    title: str
    description: str = ""
    location: str = ""
    contact: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


@dataclass
class LifecycleResult:
    """Resultado de una operación sobre un aviso."""

    success: bool
    post: Optional[Dict[str, Any]] = None
    message: str = ""
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def failure(cls, exc: CoordinationError) -> "LifecycleResult":
        return cls(success=False, error=exc.message, error_code=exc.code, message=exc.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "post": self.post,
            "message": self.message,
            "error": self.error,
            "errorCode": self.error_code,
        }


# =============================================================================
# SERVICIO PRINCIPAL
# =============================================================================


class PostService:
    """Gestiona avisos sobre una sesión SQLAlchemy (commit/rollback propios)."""

    def __init__(self, session: Session):
        self.session = session

    # -------------------------------------------------------------------------
    # CONSULTAS
    # -------------------------------------------------------------------------

    def list_posts(self) -> List[Post]:
        """Avisos ordenados por fecha de creación, más recientes primero."""
        return self.session.query(Post).order_by(Post.created_at.desc()).all()

    def get_post(self, post_id: str) -> Optional[Post]:
        return self.session.get(Post, post_id)

    def _lock_post(self, post_id: str) -> Post:
        # SELECT ... FOR UPDATE: dos compromisos simultáneos se serializan por fila
        post = (
            self.session.query(Post)
            .filter(Post.id == post_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if post is None:
            raise PostNotFoundError(f"Aviso {post_id} no encontrado")
        return post

    def _commit(self, action: str, post_id: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("action=%s commit_failed post_id=%s error=%s", action, post_id, exc)
            raise TransientWriteError("No se pudo guardar el cambio. Intentá de nuevo.") from exc

    # -------------------------------------------------------------------------
    # OPERACIONES
    # -------------------------------------------------------------------------

    def create_post(self, form: NewPost, actor: Optional[Actor]) -> Post:
        """Crea un aviso en estado abierto para el actor autenticado."""
        actor = require_actor(actor)
        post = Post(
            type=PostType(form.type).value,
            category=PostCategory(form.category).value,
            title=form.title.strip(),
            description=form.description,
            location=form.location,
            contact=form.contact,
            lat=form.lat,
            lng=form.lng,
            user_id=actor.uid,
            user_name=actor.display_name,
            user_photo=actor.photo_url,
            resolved=False,
            status=PostStatus.ABIERTO.value,
            assigned_to=[],
            history=[],
        )
        self.session.add(post)
        self._commit("create_post", "-")
        logger.info("action=create_post post_id=%s user_id=%s category=%s", post.id, actor.uid, post.category)
        return post

    def commit_assistance(self, post_id: str, actor: Optional[Actor], note: str) -> LifecycleResult:
        """Registra que el actor va en camino a asistir el aviso.

        Agrega una entrada 'en_camino' al historial (siempre) y suma al actor a
        los asignados (una sola vez por uid). Pasa el aviso a en_proceso.
        """
        try:
            actor = require_actor(actor)
            note = (note or "").strip()
            if not note:
                raise InvalidCommitmentError("Dejá una nota para coordinar la asistencia")

            post = self._lock_post(post_id)
            if post.effective_status == PostStatus.RESUELTO:
                self.session.rollback()
                raise InvalidTransitionError("El aviso ya está resuelto")

            entry = {
                "action": HistoryAction.EN_CAMINO.value,
                "user": actor.name,
                "userId": actor.uid,
                "note": note,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
            assigned = list(post.assigned_to or [])
            if not any(a.get("uid") == actor.uid for a in assigned):
                assigned.append({"uid": actor.uid, "name": actor.name})

            # Listas nuevas para que SQLAlchemy detecte el cambio en columnas JSON
            post.history = [*(post.history or []), entry]
            post.assigned_to = assigned
            post.status = PostStatus.EN_PROCESO.value
            self._commit("commit_assistance", post_id)
        except CoordinationError as exc:
            logger.info("action=commit_assistance rejected post_id=%s code=%s", post_id, exc.code)
            return LifecycleResult.failure(exc)

        logger.info(
            "action=commit_assistance post_id=%s user_id=%s assigned=%d history=%d",
            post_id,
            actor.uid,
            len(post.assigned_to),
            len(post.history),
        )
        return LifecycleResult(success=True, post=post.to_dict(), message="Asistencia registrada")

    def resolve_post(
        self,
        post_id: str,
        actor: Optional[Actor],
        *,
        profile: Optional[UserProfile] = None,
        note: Optional[str] = None,
    ) -> LifecycleResult:
        """Marca el aviso como resuelto (creador o administrador)."""
        try:
            actor = require_actor(actor)
            post = self._lock_post(post_id)
            is_admin = profile is not None and profile.is_admin
            if post.user_id != actor.uid and not is_admin:
                self.session.rollback()
                raise PermissionDeniedError("Solo quien publicó el aviso puede resolverlo")
            if post.effective_status == PostStatus.RESUELTO:
                self.session.rollback()
                raise InvalidTransitionError("El aviso ya está resuelto")

            entry = {
                "action": HistoryAction.RESUELTO.value,
                "user": actor.name,
                "userId": actor.uid,
                "note": (note or "").strip(),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
            post.history = [*(post.history or []), entry]
            post.status = PostStatus.RESUELTO.value
            post.resolved = True
            self._commit("resolve_post", post_id)
        except CoordinationError as exc:
            logger.info("action=resolve_post rejected post_id=%s code=%s", post_id, exc.code)
            return LifecycleResult.failure(exc)

        logger.info("action=resolve_post post_id=%s user_id=%s", post_id, actor.uid)
        return LifecycleResult(success=True, post=post.to_dict(), message="Aviso resuelto")

    def delete_post(self, post_id: str, actor: Optional[Actor]) -> LifecycleResult:
        """Borra definitivamente el aviso; solo su creador puede hacerlo."""
        try:
            actor = require_actor(actor)
            post = self._lock_post(post_id)
            if post.user_id != actor.uid:
                self.session.rollback()
                raise PermissionDeniedError("Solo quien publicó el aviso puede borrarlo")
            self.session.delete(post)
            self._commit("delete_post", post_id)
        except CoordinationError as exc:
            logger.info("action=delete_post rejected post_id=%s code=%s", post_id, exc.code)
            return LifecycleResult.failure(exc)

        logger.info("action=delete_post post_id=%s user_id=%s", post_id, actor.uid)
        return LifecycleResult(success=True, message="Aviso eliminado")


# =============================================================================
# FUNCIONES DE ALTO NIVEL (PARA USO EN ENDPOINTS)
# =============================================================================


def commit_assistance(session: Session, post_id: str, actor: Optional[Actor], note: str) -> LifecycleResult:
    """Wrapper para registrar un compromiso de asistencia."""
    return PostService(session).commit_assistance(post_id, actor, note)


def list_posts(session: Session) -> List[Post]:
    """Wrapper para el listado de avisos."""
    return PostService(session).list_posts()
