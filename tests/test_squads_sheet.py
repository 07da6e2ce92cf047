# Nombre de archivo: test_squads_sheet.py
# Ubicación de archivo: tests/test_squads_sheet.py
# Descripción: Pruebas del mapeo de filas de la planilla de cuadrillas y de la lectura XLSX/CSV

from __future__ import annotations

import io
from datetime import datetime, timezone

import pandas as pd
import pytest

from core.errors import ParseError
from core.parsers import squads_sheet as sheet
from core.parsers.squads_sheet import diagnose_columns, map_row_to_squad, read_sheet_rows

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

FULL_ROW = {
    sheet.COL_DNI: "30111222",
    sheet.COL_NOMBRE: "Marta Quiroga",
    sheet.COL_TELEFONO: "2945111222",
    sheet.COL_ALOJAMIENTO: "El Hoyo",
    sheet.COL_NOMBRE_CUADRILLA: "Los Coihues",
    sheet.COL_INTEGRANTES: "7",
    sheet.COL_ZONA: "Puerto Patriada",
    sheet.COL_LINK_MAPA: "https://www.google.com/maps/@-42.05,-71.45,14z",
    sheet.COL_EPP: "Si",
    sheet.COL_EPP_DESC: "Cascos y antiparras",
    sheet.COL_HERRAMIENTAS: "SÍ, varias",
    sheet.COL_HERRAMIENTAS_DESC: "Palas y mochilas",
    sheet.COL_MAQUINARIA: "No",
    sheet.COL_MAQUINARIA_DESC: "",
    sheet.COL_AGUA: "si",
    sheet.COL_OPERATIVAS: "Línea de fuego",
    sheet.COL_SALUD: "Primeros auxilios",
    sheet.COL_LOGISTICA: "Camioneta 4x4",
    sheet.COL_COMUNICACIONES: "Radio VHF",
    sheet.COL_MANDO: "Jefa de cuadrilla",
    sheet.COL_DIA_SALIDA: "Lunes",
    sheet.COL_HORA_SALIDA: "07:00",
    sheet.COL_HORA_REGRESO: "19:00",
    sheet.COL_REGRESO: "No",
    sheet.COL_NOTAS: "Necesitan combustible",
}


def test_escenario_basico_de_fila():
    row = {
        "DNI": "123",
        "Nombre y apellido": "Ana",
        "Cuantos andan en su cuadrilla? 👷": "5",
        "Lleva agua potable? 💧": "Si",
        "Link de ubicacion Google Maps del lugar de intervencion 📍 (Optional)": "https://maps?q=-42.1,-71.3",
    }
    squad = map_row_to_squad(row, now=NOW)

    assert squad.id == "123"
    assert squad.leader_name == "Ana"
    assert squad.members_count == 5
    assert squad.equipment["hasWater"] is True
    assert squad.lat == -42.1
    assert squad.lng == -71.3


def test_fila_completa_mapea_todas_las_secciones():
    squad = map_row_to_squad(FULL_ROW, now=NOW)

    assert squad.id == squad.leader_dni == "30111222"
    assert squad.name == "Los Coihues"
    assert squad.lodging_location == "El Hoyo"
    assert squad.intervention_zone == "Puerto Patriada"
    assert (squad.lat, squad.lng) == (-42.05, -71.45)
    assert squad.equipment == {
        "hasPPE": True,
        "ppeDescription": "Cascos y antiparras",
        "hasTools": True,
        "toolsDescription": "Palas y mochilas",
        "hasMachinery": False,
        "machineryDescription": "",
        "hasWater": True,
    }
    assert squad.skills["communications"] == "Radio VHF"
    assert squad.mission["hasReturned"] is False
    assert squad.mission["coordinationNotes"] == "Necesitan combustible"
    assert squad.mission["lastUpdate"] == NOW.isoformat()


def test_fila_vacia_degrada_a_valores_por_defecto():
    squad = map_row_to_squad({sheet.COL_DNI: "30111222"}, now=NOW)

    assert squad.leader_name == "Sin Nombre"
    assert squad.name == "Cuadrilla 30111222"
    assert squad.intervention_zone == "Sin asignar"
    assert squad.members_count == 0
    assert squad.lat is None and squad.lng is None
    assert squad.location_link == ""
    assert not any(v for k, v in squad.equipment.items())
    assert all(v == "" for v in squad.skills.values())
    assert squad.mission["hasReturned"] is False


def test_sin_dni_genera_ids_distintos():
    first = map_row_to_squad({sheet.COL_NOMBRE: "Pedro"})
    second = map_row_to_squad({sheet.COL_NOMBRE: "Pedro"})

    assert first.id.startswith("SQUAD-")
    assert second.id.startswith("SQUAD-")
    assert first.id != second.id


def test_id_estable_opcional_por_nombre_y_telefono():
    row = {sheet.COL_NOMBRE: "Pedro Ñancucheo", sheet.COL_TELEFONO: "2944000111"}
    first = map_row_to_squad(row, stable_fallback_ids=True)
    second = map_row_to_squad(dict(row), stable_fallback_ids=True)
    other = map_row_to_squad({**row, sheet.COL_TELEFONO: "2944999999"}, stable_fallback_ids=True)

    assert first.id == second.id
    assert first.id.startswith("SQUAD-")
    assert other.id != first.id


@pytest.mark.parametrize(
    "raw, expected",
    [("5", 5), (" 12 personas", 12), ("", 0), ("muchos", 0), ("-3", 0), ("4.0", 4)],
)
def test_cantidad_de_integrantes(raw, expected):
    squad = map_row_to_squad({sheet.COL_DNI: "1", sheet.COL_INTEGRANTES: raw})
    assert squad.members_count == expected


@pytest.mark.parametrize("raw, expected", [("Si", True), ("SÍ", True), ("sí, llevamos", True), ("No", False), ("", False)])
def test_booleanos_por_token_afirmativo(raw, expected):
    squad = map_row_to_squad({sheet.COL_DNI: "1", sheet.COL_AGUA: raw})
    assert squad.equipment["hasWater"] is expected


def test_dni_numerico_exportado_como_float():
    squad = map_row_to_squad({sheet.COL_DNI: "30111222.0", sheet.COL_TELEFONO: "2945111222.0"})
    assert squad.id == "30111222"
    assert squad.leader_phone == "2945111222"


def test_marca_temporal_de_la_fila_tiene_prioridad():
    squad = map_row_to_squad({sheet.COL_DNI: "1", sheet.COL_MARCA_TEMPORAL: "15/01/2026 10:30:00"}, now=NOW)
    assert squad.mission["lastUpdate"] == "15/01/2026 10:30:00"


def test_diagnostico_de_columnas():
    diag = diagnose_columns(["DNI", "Nombre y apellido", "Columna Renombrada"])

    assert diag.unmapped == ["Columna Renombrada"]
    assert sheet.COL_AGUA in diag.missing
    assert "DNI" not in diag.missing


def test_lee_csv_con_celdas_vacias_y_descarta_filas_en_blanco():
    content = (
        "DNI,Nombre y apellido,Lleva agua potable? 💧\n"
        "123,Ana,Si\n"
        ",,\n"
        "456,,No\n"
    ).encode("utf-8")

    rows = read_sheet_rows(content, "cuadrillas.csv")

    assert rows.columns == ["DNI", "Nombre y apellido", "Lleva agua potable? 💧"]
    assert len(rows.rows) == 2
    assert rows.rows[0]["DNI"] == "123"
    assert rows.rows[1]["Nombre y apellido"] == ""


def test_lee_primera_hoja_de_xlsx():
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        pd.DataFrame([{"DNI": "777", "Nombre y apellido": "Luis"}]).to_excel(writer, sheet_name="Respuestas", index=False)
        pd.DataFrame([{"DNI": "999"}]).to_excel(writer, sheet_name="Otra", index=False)

    rows = read_sheet_rows(buffer.getvalue(), "cuadrillas.xlsx")

    assert rows.rows == [{"DNI": "777", "Nombre y apellido": "Luis"}]


def test_xlsx_corrupto_lanza_parse_error():
    with pytest.raises(ParseError):
        read_sheet_rows(b"PK\x03\x04basura", "roto.xlsx")


def test_xls_legacy_no_soportado():
    with pytest.raises(ParseError):
        read_sheet_rows(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1", "viejo.xls")
