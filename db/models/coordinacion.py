# Nombre de archivo: coordinacion.py
# Ubicación de archivo: db/models/coordinacion.py
# Descripción: Modelos SQLAlchemy de avisos (posts), cuadrillas (squads), perfiles y configuración compartida

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text

from db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PostType(str, Enum):
    NECESIDAD = "necesidad"
    OFERTA = "oferta"


class PostCategory(str, Enum):
    """Categorías fijas de avisos."""

    AGUA = "agua"
    LOGISTICA = "logistica"
    HERRAMIENTAS = "herramientas"
    SALUD = "salud"
    HOSPEDAJE = "hospedaje"
    ANIMALES = "animales"
    VOLUNTARIOS = "voluntarios"


class PostStatus(str, Enum):
    """Estados del ciclo de vida de un aviso."""

    ABIERTO = "abierto"
    EN_PROCESO = "en_proceso"
    RESUELTO = "resuelto"


class HistoryAction(str, Enum):
    CREADO = "creado"
    EN_CAMINO = "en_camino"
    RESUELTO = "resuelto"
    CANCELADO = "cancelado"


class UserRole(str, Enum):
    USER = "user"
    BRIGADISTA = "brigadista"
    ADMIN = "admin"


class Post(Base):
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type = Column(String(16), nullable=False)
    category = Column(String(32), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    location = Column(String(255), nullable=False, default="")
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    contact = Column(String(255), nullable=False, default="")
    user_id = Column(String(128), nullable=False, index=True)
    user_name = Column(String(200), nullable=True)
    user_photo = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True, default=_utcnow, index=True)
    resolved = Column(Boolean, nullable=False, default=False)
    # Nullable para registros legacy sin estado (se normaliza al leer)
    status = Column(String(16), nullable=True)
    assigned_to = Column(JSON, nullable=True)
    history = Column(JSON, nullable=True)

    @property
    def effective_status(self) -> PostStatus:
        # resolved=True manda sobre cualquier estado guardado
        if self.resolved:
            return PostStatus.RESUELTO
        if self.status:
            return PostStatus(self.status)
        return PostStatus.ABIERTO

    def to_dict(self) -> Dict[str, Any]:
        """Instantánea normalizada del aviso para la capa de presentación."""
        return {
            "id": self.id,
            "type": self.type,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "lat": self.lat,
            "lng": self.lng,
            "contact": self.contact,
            "userId": self.user_id,
            "userName": self.user_name,
            "userPhoto": self.user_photo,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "resolved": bool(self.resolved),
            "status": self.effective_status.value,
            "assignedTo": list(self.assigned_to or []),
            "history": list(self.history or []),
        }


class Squad(Base):
    __tablename__ = "squads"

    id = Column(String(64), primary_key=True)
    leader_name = Column(String(200), nullable=False)
    leader_dni = Column(String(64), nullable=False)
    leader_phone = Column(String(64), nullable=False, default="")
    lodging_location = Column(String(255), nullable=True)
    name = Column(String(255), nullable=False)
    members_count = Column(Integer, nullable=False, default=0)
    intervention_zone = Column(String(255), nullable=False)
    location_link = Column(Text, nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    equipment = Column(JSON, nullable=False)
    skills = Column(JSON, nullable=False)
    mission = Column(JSON, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "leaderName": self.leader_name,
            "leaderDni": self.leader_dni,
            "leaderPhone": self.leader_phone,
            "lodgingLocation": self.lodging_location,
            "name": self.name,
            "membersCount": self.members_count,
            "interventionZone": self.intervention_zone,
            "locationLink": self.location_link,
            "lat": self.lat,
            "lng": self.lng,
            "equipment": dict(self.equipment or {}),
            "skills": dict(self.skills or {}),
            "mission": dict(self.mission or {}),
        }


class UserProfile(Base):
    __tablename__ = "users"

    uid = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=False, default="")
    display_name = Column(String(200), nullable=False, default="Usuario Nuevo")
    role = Column(String(16), nullable=False, default=UserRole.USER.value)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "displayName": self.display_name,
            "role": self.role,
        }


class AppConfig(Base):
    """Documento único de configuración compartida (clave 'general')."""

    __tablename__ = "app_config"

    key = Column(String(32), primary_key=True)
    sheet_url = Column(Text, nullable=True)
    updated_by = Column(String(255), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sheetUrl": self.sheet_url,
            "updatedBy": self.updated_by,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
