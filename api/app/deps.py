# Nombre de archivo: deps.py
# Ubicación de archivo: api/app/deps.py
# Descripción: Dependencias FastAPI compartidas (sesión, actor autenticado, perfil admin, cliente HTTP)

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional
from urllib.parse import unquote

import httpx
from fastapi import Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.errors import CoordinationError
from core.events import ChangeFeed, get_change_feed
from core.services.users import Actor, ensure_profile, require_admin
from db.models.coordinacion import UserProfile
from db.session import get_session

# Código de error de dominio → estado HTTP
STATUS_BY_CODE: Dict[str, int] = {
    "permission": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "invalid_transition": status.HTTP_409_CONFLICT,
    "invalid_input": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "invalid_config": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "ingestion": status.HTTP_400_BAD_REQUEST,
    "parse": status.HTTP_400_BAD_REQUEST,
    "transient_write": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def decode_header_text(value: Optional[str]) -> Optional[str]:
    """Decodifica un encabezado de texto libre (nombre visible).

    El proxy envía el nombre percent-encoded en UTF-8 ("Luc%C3%ADa"). Si llega
    UTF-8 crudo, Starlette lo entrega como latin-1 y se recompone.
    """
    if value is None:
        return None
    try:
        value = value.encode("latin-1").decode("utf-8")
    except UnicodeError:
        # latin-1 genuino: se conserva tal cual
        pass
    return unquote(value, encoding="utf-8", errors="replace").strip() or None


def get_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_photo: Optional[str] = Header(None),
) -> Optional[Actor]:
    """Identidad provista por el proxy de autenticación; None si es anónimo."""
    if not x_user_id or not x_user_id.strip():
        return None
    return Actor(
        uid=x_user_id.strip(),
        display_name=decode_header_text(x_user_name),
        email=x_user_email,
        photo_url=x_user_photo,
    )


def get_profile(
    actor: Optional[Actor] = Depends(get_actor),
    session: Session = Depends(get_session),
) -> Optional[UserProfile]:
    if actor is None:
        return None
    try:
        return ensure_profile(session, actor)
    except CoordinationError as exc:
        raise HTTPException(
            status_code=STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST),
            detail=exc.message,
        ) from exc


def get_admin_profile(profile: Optional[UserProfile] = Depends(get_profile)) -> UserProfile:
    try:
        return require_admin(profile)
    except CoordinationError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message) from exc


def get_sheets_client() -> Iterator[httpx.Client]:
    client = httpx.Client(follow_redirects=True)
    try:
        yield client
    finally:
        client.close()


def get_feed() -> ChangeFeed:
    return get_change_feed()


def error_response(exc: CoordinationError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST),
        content={"success": False, "error": exc.message, "errorCode": exc.code},
    )


def result_response(payload: Dict[str, Any]) -> JSONResponse:
    """Serializa un resultado de servicio con el estado HTTP que corresponde a su código."""
    if payload.get("success"):
        return JSONResponse(status_code=status.HTTP_200_OK, content=payload)
    code = payload.get("errorCode") or ""
    return JSONResponse(status_code=STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST), content=payload)


__all__ = [
    "get_session",
    "decode_header_text",
    "get_actor",
    "get_profile",
    "get_admin_profile",
    "get_sheets_client",
    "get_feed",
    "error_response",
    "result_response",
]
