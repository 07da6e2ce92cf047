# Nombre de archivo: maps_link.py
# Ubicación de archivo: core/parsers/maps_link.py
# Descripción: Extracción de latitud/longitud desde enlaces de Google Maps en texto libre

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

# Orden de prioridad: "@lat,lng" (vista del mapa) y luego "q=lat,lng" (búsqueda).
# Los enlaces acortados (maps.app.goo.gl) no se resuelven.
_PATTERNS = (
    re.compile(r"@([+-]?\d+\.\d+),([+-]?\d+\.\d+)"),
    re.compile(r"q=([+-]?\d+\.\d+),([+-]?\d+\.\d+)"),
)


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float


def extract_coordinates(text: Any) -> Optional[Coordinates]:
    """Devuelve las coordenadas del primer patrón que coincida o None."""
    if text is None:
        return None
    link = str(text)
    if not link.strip():
        return None
    for pattern in _PATTERNS:
        match = pattern.search(link)
        if match:
            return Coordinates(lat=float(match.group(1)), lng=float(match.group(2)))
    return None


__all__ = ["Coordinates", "extract_coordinates"]
