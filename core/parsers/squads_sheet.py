"""
# Nombre de archivo: squads_sheet.py
# Ubicación de archivo: core/parsers/squads_sheet.py
# Descripción: Lectura de la planilla de cuadrillas (XLSX/CSV) y mapeo de filas a registros Squad
"""

from __future__ import annotations

import hashlib
import io
import re
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd
from unidecode import unidecode

from core.errors import ParseError
from core.parsers.maps_link import extract_coordinates


# Encabezados tal como los genera el formulario de inscripción de cuadrillas.
COL_DNI = "DNI"
COL_NOMBRE = "Nombre y apellido"
COL_TELEFONO = "Numero mobil"
COL_ALOJAMIENTO = "Localidad donde se quedan en comarca (Optional)"
COL_NOMBRE_CUADRILLA = "Nombre de la cuadrilla (Optional)"
COL_INTEGRANTES = "Cuantos andan en su cuadrilla? 👷"
COL_ZONA = "Zona de intervencion 📍"
COL_LINK_MAPA = "Link de ubicacion Google Maps del lugar de intervencion 📍 (Optional)"
COL_EPP = "Lleva equipo de proteccion? ⛑️"
COL_EPP_DESC = "Que tipo de equipo de proteccion? ⛑️ (Optional)"
COL_HERRAMIENTAS = "Lleva insumos, accesorios y/o herramientas? ⚒️"
COL_HERRAMIENTAS_DESC = "Que tipo de insumos, accesorios y/o herramientas? ⚒️ (Optional)"
COL_MAQUINARIA = "Lleva maquinaria grande? 🚜"
COL_MAQUINARIA_DESC = "Que tipo de maquinaria? 🚜 (Optional)"
COL_AGUA = "Lleva agua potable? 💧"
COL_OPERATIVAS = "Competencias Operativas (Línea de Fuego)"
COL_SALUD = "Salud y Seguridad"
COL_LOGISTICA = "Logística y Transporte"
COL_COMUNICACIONES = "Técnica y Comunicaciones"
COL_MANDO = "Gestión y Mando"
COL_DIA_SALIDA = "Dia de salida"
COL_HORA_SALIDA = "Hora de salida a terreno estimada"
COL_HORA_REGRESO = "Hora de regreso de terreno estimada"
COL_REGRESO = "La cuadrilla regreso?"
COL_NOTAS = "Informarcion sobre la cuadrilla"
COL_MARCA_TEMPORAL = "Marca temporal"

SQUAD_COLUMNS: tuple[str, ...] = (
    COL_DNI,
    COL_NOMBRE,
    COL_TELEFONO,
    COL_ALOJAMIENTO,
    COL_NOMBRE_CUADRILLA,
    COL_INTEGRANTES,
    COL_ZONA,
    COL_LINK_MAPA,
    COL_EPP,
    COL_EPP_DESC,
    COL_HERRAMIENTAS,
    COL_HERRAMIENTAS_DESC,
    COL_MAQUINARIA,
    COL_MAQUINARIA_DESC,
    COL_AGUA,
    COL_OPERATIVAS,
    COL_SALUD,
    COL_LOGISTICA,
    COL_COMUNICACIONES,
    COL_MANDO,
    COL_DIA_SALIDA,
    COL_HORA_SALIDA,
    COL_HORA_REGRESO,
    COL_REGRESO,
    COL_NOTAS,
    COL_MARCA_TEMPORAL,
)

AFFIRMATIVE_TOKEN = "si"
FALLBACK_ID_PREFIX = "SQUAD-"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_INTEGRAL_FLOAT = re.compile(r"^(\d+)\.0+$")
_XLSX_MAGIC = b"PK\x03\x04"
_XLS_MAGIC = b"\xd0\xcf\x11\xe0"


@dataclass
class SheetRows:
    """Filas decodificadas de la primera hoja (todas las celdas como texto)."""

    columns: List[str]
    rows: List[Dict[str, str]]


@dataclass
class ColumnDiagnostics:
    unmapped: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)


@dataclass
class SquadRecord:
    """Registro normalizado de cuadrilla listo para persistir (reemplazo completo)."""

    id: str
    leader_name: str
    leader_dni: str
    leader_phone: str
    lodging_location: str
    name: str
    members_count: int
    intervention_zone: str
    location_link: str
    lat: Optional[float]
    lng: Optional[float]
    equipment: Dict[str, Any]
    skills: Dict[str, str]
    mission: Dict[str, Any]

    def to_columns(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "leader_name": self.leader_name,
            "leader_dni": self.leader_dni,
            "leader_phone": self.leader_phone,
            "lodging_location": self.lodging_location,
            "name": self.name,
            "members_count": self.members_count,
            "intervention_zone": self.intervention_zone,
            "location_link": self.location_link,
            "lat": self.lat,
            "lng": self.lng,
            "equipment": dict(self.equipment),
            "skills": dict(self.skills),
            "mission": dict(self.mission),
        }


# ──────────────────────────────────────────────────────────────────────────────
# Lectura de planilla
# ──────────────────────────────────────────────────────────────────────────────


def _read_frame(content: bytes, filename: Optional[str]) -> pd.DataFrame:
    name = (filename or "").lower()
    if content.startswith(_XLS_MAGIC) or name.endswith(".xls"):
        raise ParseError("Formato .xls no soportado (use .xlsx o .csv)")
    if content.startswith(_XLSX_MAGIC) or name.endswith((".xlsx", ".xlsm")):
        return pd.read_excel(
            io.BytesIO(content),
            sheet_name=0,
            engine="openpyxl",
            dtype=str,
            keep_default_na=False,
        )
    return pd.read_csv(
        io.BytesIO(content),
        dtype=str,
        keep_default_na=False,
        encoding="utf-8-sig",
    )


def read_sheet_rows(content: bytes, filename: Optional[str] = None) -> SheetRows:
    """Decodifica la primera hoja en una secuencia ordenada de filas.

    Celdas vacías quedan como "" y las filas completamente vacías se descartan.
    Lanza ParseError si el contenido no es una planilla legible.
    """
    try:
        df = _read_frame(content, filename)
    except ParseError:
        raise
    except pd.errors.EmptyDataError:
        return SheetRows(columns=[], rows=[])
    except Exception as exc:  # noqa: BLE001
        raise ParseError(f"No se pudo leer la planilla: {exc}") from exc

    columns = [str(c).strip() for c in df.columns]
    df.columns = columns
    df = df.fillna("")
    rows: List[Dict[str, str]] = []
    for record in df.to_dict(orient="records"):
        row = {str(k): str(v) for k, v in record.items()}
        if any(v.strip() for v in row.values()):
            rows.append(row)
    return SheetRows(columns=columns, rows=rows)


def diagnose_columns(columns: Sequence[str]) -> ColumnDiagnostics:
    """Compara los encabezados recibidos con el esquema fijo del formulario."""
    present = {str(c).strip() for c in columns}
    return ColumnDiagnostics(
        unmapped=[c for c in columns if str(c).strip() not in SQUAD_COLUMNS],
        missing=[c for c in SQUAD_COLUMNS if c not in present],
    )


# ──────────────────────────────────────────────────────────────────────────────
# Mapeo de filas
# ──────────────────────────────────────────────────────────────────────────────


def _text(row: Mapping[str, Any], column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def _identifier_text(row: Mapping[str, Any], column: str) -> str:
    # Celdas numéricas exportadas como "12345678.0"
    text = _text(row, column)
    match = _INTEGRAL_FLOAT.match(text)
    return match.group(1) if match else text


def _is_affirmative(row: Mapping[str, Any], column: str) -> bool:
    return AFFIRMATIVE_TOKEN in unidecode(_text(row, column)).lower()


def _parse_members(row: Mapping[str, Any]) -> int:
    match = _LEADING_INT.match(_text(row, COL_INTEGRANTES))
    if not match:
        return 0
    return max(int(match.group(1)), 0)


def _fallback_id(name: str, phone: str, stable: bool) -> str:
    if stable and (name or phone):
        key = f"{unidecode(name).lower()}|{phone}".encode("utf-8")
        return FALLBACK_ID_PREFIX + str(int(hashlib.sha256(key).hexdigest()[:12], 16))
    return FALLBACK_ID_PREFIX + str(secrets.randbelow(10**12))


def map_row_to_squad(
    row: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
    stable_fallback_ids: bool = False,
) -> SquadRecord:
    """Convierte una fila de la planilla en un SquadRecord completo.

    Nunca lanza: columnas ausentes o vacías degradan a valores por defecto.
    """
    leader_name = _text(row, COL_NOMBRE)
    phone = _identifier_text(row, COL_TELEFONO)
    squad_id = _identifier_text(row, COL_DNI) or _fallback_id(leader_name, phone, stable_fallback_ids)

    link = _text(row, COL_LINK_MAPA)
    coords = extract_coordinates(link)

    stamp = _text(row, COL_MARCA_TEMPORAL)
    if not stamp:
        stamp = (now or datetime.now(timezone.utc)).isoformat()

    return SquadRecord(
        id=squad_id,
        leader_name=leader_name or "Sin Nombre",
        leader_dni=squad_id,
        leader_phone=phone,
        lodging_location=_text(row, COL_ALOJAMIENTO),
        name=_text(row, COL_NOMBRE_CUADRILLA) or f"Cuadrilla {leader_name or squad_id}",
        members_count=_parse_members(row),
        intervention_zone=_text(row, COL_ZONA) or "Sin asignar",
        location_link=link,
        # None explícito: al reingestar debe limpiar coordenadas previas
        lat=coords.lat if coords else None,
        lng=coords.lng if coords else None,
        equipment={
            "hasPPE": _is_affirmative(row, COL_EPP),
            "ppeDescription": _text(row, COL_EPP_DESC),
            "hasTools": _is_affirmative(row, COL_HERRAMIENTAS),
            "toolsDescription": _text(row, COL_HERRAMIENTAS_DESC),
            "hasMachinery": _is_affirmative(row, COL_MAQUINARIA),
            "machineryDescription": _text(row, COL_MAQUINARIA_DESC),
            "hasWater": _is_affirmative(row, COL_AGUA),
        },
        skills={
            "operational": _text(row, COL_OPERATIVAS),
            "healthSafety": _text(row, COL_SALUD),
            "logistics": _text(row, COL_LOGISTICA),
            "communications": _text(row, COL_COMUNICACIONES),
            "management": _text(row, COL_MANDO),
        },
        mission={
            "departureDay": _text(row, COL_DIA_SALIDA),
            "departureTime": _text(row, COL_HORA_SALIDA),
            "returnTime": _text(row, COL_HORA_REGRESO),
            "hasReturned": _is_affirmative(row, COL_REGRESO),
            "coordinationNotes": _text(row, COL_NOTAS),
            "lastUpdate": stamp,
        },
    )


__all__ = [
    "SQUAD_COLUMNS",
    "SheetRows",
    "ColumnDiagnostics",
    "SquadRecord",
    "read_sheet_rows",
    "diagnose_columns",
    "map_row_to_squad",
]
