# Nombre de archivo: squads.py
# Ubicación de archivo: api/app/routes/squads.py
# Descripción: Lectura pública de cuadrillas e ingesta administrativa (archivo o planilla publicada)

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from api.app.deps import error_response, get_admin_profile, get_feed, get_session, get_sheets_client
from core.errors import CoordinationError, IngestionError
from core.events import ChangeEvent, ChangeFeed
from core.services.app_config import resolve_sheet_url
from core.services.squad_ingest import ingest_squads, list_squads, sync_squads_from_url
from db.models.coordinacion import UserProfile

router = APIRouter(tags=["squads"])
logger = logging.getLogger(__name__)


class SyncRequest(BaseModel):
    url: Optional[str] = None


@router.get("/api/squads")
async def get_squads(session: Session = Depends(get_session)) -> List[Dict[str, Any]]:
    """Colección completa de cuadrillas para clientes de sondeo."""
    return [squad.to_dict() for squad in list_squads(session)]


@router.post("/api/admin/squads/upload")
async def upload_squads(
    file: UploadFile = File(..., description="Planilla XLSX o CSV de cuadrillas"),
    admin: UserProfile = Depends(get_admin_profile),
    session: Session = Depends(get_session),
    feed: ChangeFeed = Depends(get_feed),
) -> JSONResponse:
    content = await file.read()
    try:
        result = await run_in_threadpool(
            ingest_squads,
            content,
            session=session,
            filename=file.filename,
            source="upload",
        )
    except CoordinationError as exc:
        logger.warning("action=upload_squads failed admin=%s code=%s", admin.uid, exc.code)
        return error_response(exc)
    feed.publish(ChangeEvent(collection="squads", kind="ingested"))
    return JSONResponse(result.to_response())


@router.post("/api/admin/squads/sync")
async def sync_squads(
    payload: Optional[SyncRequest] = None,
    admin: UserProfile = Depends(get_admin_profile),
    session: Session = Depends(get_session),
    client: httpx.Client = Depends(get_sheets_client),
    feed: ChangeFeed = Depends(get_feed),
) -> JSONResponse:
    url = resolve_sheet_url(session, payload.url if payload else None)
    try:
        if not url:
            raise IngestionError("No hay URL de planilla configurada")
        result = await run_in_threadpool(sync_squads_from_url, url, session=session, http_client=client)
    except CoordinationError as exc:
        logger.warning("action=sync_squads failed admin=%s code=%s", admin.uid, exc.code)
        return error_response(exc)
    feed.publish(ChangeEvent(collection="squads", kind="ingested"))
    return JSONResponse(result.to_response())
