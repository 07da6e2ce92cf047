# Nombre de archivo: squad_ingest.py
# Ubicación de archivo: core/services/squad_ingest.py
# Descripción: Ingesta atómica de cuadrillas desde archivo subido o Google Sheet publicada (CSV)

"""Pipeline de ingesta de cuadrillas.

1. Obtiene los bytes (archivo subido o descarga del CSV publicado).
2. Decodifica la primera hoja en filas.
3. Rechaza hojas sin filas de datos.
4. Mapea cada fila a un registro Squad y la agenda como reemplazo completo.
5. Confirma todo en una única transacción (todo o nada).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import get_settings
from core.errors import IngestionError, TransientWriteError
from core.parsers.squads_sheet import diagnose_columns, map_row_to_squad, read_sheet_rows
from db.models.coordinacion import Squad

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestResult:
    count: int
    source: str
    ids: List[str] = field(default_factory=list)
    unmapped_columns: List[str] = field(default_factory=list)
    missing_columns: List[str] = field(default_factory=list)

    def to_response(self) -> Dict[str, object]:
        return {
            "success": True,
            "count": self.count,
            "source": self.source,
            "unmappedColumns": self.unmapped_columns,
            "missingColumns": self.missing_columns,
        }


def ingest_squads(
    content: bytes,
    *,
    session: Session,
    filename: Optional[str] = None,
    source: str = "upload",
    stable_fallback_ids: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> IngestResult:
    """Ingresa todas las filas de la planilla como reemplazo completo por id.

    Raises:
        ParseError: la planilla no se puede decodificar.
        IngestionError: la hoja no tiene filas de datos.
        TransientWriteError: falló el commit; no se escribió ninguna fila.
    """
    if not content:
        raise IngestionError("Archivo vacío")
    sheet = read_sheet_rows(content, filename)
    if not sheet.rows:
        logger.info("action=ingest_squads empty_sheet source=%s", source)
        raise IngestionError("empty sheet")

    diagnostics = diagnose_columns(sheet.columns)
    if diagnostics.unmapped or diagnostics.missing:
        logger.warning(
            "action=ingest_squads column_mismatch source=%s unmapped=%s missing=%s",
            source,
            diagnostics.unmapped,
            diagnostics.missing,
        )

    if stable_fallback_ids is None:
        stable_fallback_ids = get_settings().ingest.stable_fallback_ids
    stamp = now or datetime.now(timezone.utc)

    ids: List[str] = []
    staged: Dict[str, Squad] = {}
    for row in sheet.rows:
        record = map_row_to_squad(row, now=stamp, stable_fallback_ids=stable_fallback_ids)
        # Ids repetidos dentro de la hoja: gana la última fila
        staged[record.id] = Squad(**record.to_columns())
        ids.append(record.id)

    try:
        for squad in staged.values():
            # merge con todas las columnas seteadas: reemplaza el documento entero
            session.merge(squad)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("action=ingest_squads commit_failed source=%s error=%s", source, exc)
        raise TransientWriteError("No se pudieron guardar las cuadrillas; no se aplicó ningún cambio") from exc

    logger.info(
        "action=ingest_squads source=%s rows=%d unique_ids=%d",
        source,
        len(ids),
        len(set(ids)),
    )
    return IngestResult(
        count=len(ids),
        source=source,
        ids=ids,
        unmapped_columns=diagnostics.unmapped,
        missing_columns=diagnostics.missing,
    )


def fetch_published_sheet(
    url: str,
    *,
    http_client: Optional[httpx.Client] = None,
    timeout: Optional[float] = None,
) -> bytes:
    """Descarga el cuerpo CSV de una hoja publicada en la web."""
    if not url or not url.strip():
        raise IngestionError("No hay URL de planilla configurada")
    timeout = timeout if timeout is not None else get_settings().ingest.http_timeout
    client = http_client or httpx.Client(follow_redirects=True)
    try:
        response = client.get(url, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.warning("action=fetch_sheet status=%s url=%s", exc.response.status_code, url)
        raise IngestionError(f"La planilla respondió {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        logger.warning("action=fetch_sheet unreachable url=%s error=%s", url, exc)
        raise IngestionError("No se pudo conectar con la planilla publicada") from exc
    finally:
        if http_client is None:
            client.close()
    logger.info("action=fetch_sheet bytes=%d url=%s", len(response.content), url)
    return response.content


def sync_squads_from_url(
    url: str,
    *,
    session: Session,
    http_client: Optional[httpx.Client] = None,
    stable_fallback_ids: Optional[bool] = None,
) -> IngestResult:
    """Sincroniza cuadrillas desde la URL publicada recibida explícitamente."""
    content = fetch_published_sheet(url, http_client=http_client)
    return ingest_squads(
        content,
        session=session,
        filename="sheet.csv",
        source="sheet",
        stable_fallback_ids=stable_fallback_ids,
    )


def list_squads(session: Session) -> List[Squad]:
    return session.query(Squad).order_by(Squad.id).all()


__all__ = [
    "IngestResult",
    "ingest_squads",
    "fetch_published_sheet",
    "sync_squads_from_url",
    "list_squads",
]
