# Nombre de archivo: admin.py
# Ubicación de archivo: api/app/routes/admin.py
# Descripción: Perfil del usuario actual y configuración compartida (URL de planilla) para administradores

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.app.deps import error_response, get_admin_profile, get_profile, get_session
from core.errors import CoordinationError
from core.services.app_config import get_sheet_config, set_sheet_url
from db.models.coordinacion import UserProfile

router = APIRouter(tags=["admin"])


class SheetConfigRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)


@router.get("/api/me")
async def me(profile: Optional[UserProfile] = Depends(get_profile)) -> Dict[str, Any]:
    if profile is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sesión no encontrada")
    return profile.to_dict()


@router.get("/api/admin/config")
async def read_config(
    admin: UserProfile = Depends(get_admin_profile),
    session: Session = Depends(get_session),
) -> Dict[str, Any]:
    config = get_sheet_config(session)
    if config is None:
        return {"sheetUrl": None, "updatedBy": None, "updatedAt": None}
    return config.to_dict()


@router.put("/api/admin/config")
async def update_config(
    payload: SheetConfigRequest,
    admin: UserProfile = Depends(get_admin_profile),
    session: Session = Depends(get_session),
) -> JSONResponse:
    try:
        config = set_sheet_url(session, admin, payload.url)
    except CoordinationError as exc:
        return error_response(exc)
    return JSONResponse({"success": True, **config.to_dict()})
