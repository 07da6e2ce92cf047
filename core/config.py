# Nombre de archivo: config.py
# Ubicación de archivo: core/config.py
# Descripción: Configuración centralizada (entorno) para la API de coordinación de emergencias

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from os import getenv


def _env_bool(name: str, default: str = "false") -> bool:
    return getenv(name, default).lower() in ("true", "1", "yes")


@dataclass(slots=True)
class DatabaseSettings:
    url: str


@dataclass(slots=True)
class IngestSettings:
    """Parámetros de la ingesta de cuadrillas desde planillas."""

    default_sheet_url: str | None
    http_timeout: float
    stable_fallback_ids: bool


@dataclass(slots=True)
class Settings:
    database: DatabaseSettings
    ingest: IngestSettings
    log_level: str
    build_version: str

    def __init__(self) -> None:
        self.database = DatabaseSettings(
            url=getenv(
                "DATABASE_URL",
                f"postgresql+psycopg://{getenv('POSTGRES_USER', 'redayuda')}:{getenv('POSTGRES_PASSWORD', 'cambiar-este-password')}"
                f"@{getenv('POSTGRES_HOST', 'postgres')}:{getenv('POSTGRES_PORT', '5432')}/{getenv('POSTGRES_DB', 'redayuda')}",
            ),
        )
        self.ingest = IngestSettings(
            default_sheet_url=getenv("SQUADS_DEFAULT_SHEET_URL") or None,
            http_timeout=float(getenv("SHEETS_HTTP_TIMEOUT", "20")),
            stable_fallback_ids=_env_bool("SQUADS_STABLE_FALLBACK_IDS"),
        )
        self.log_level = getenv("LOG_LEVEL", "INFO").upper()
        self.build_version = getenv("API_BUILD_VERSION") or getenv("BUILD_VERSION") or "0.1.0"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
