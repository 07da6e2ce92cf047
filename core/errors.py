# Nombre de archivo: errors.py
# Ubicación de archivo: core/errors.py
# Descripción: Taxonomía de errores del dominio (ingesta de cuadrillas y ciclo de vida de avisos)

from __future__ import annotations


class CoordinationError(Exception):
    """Error base del dominio con un código estable para la API."""

    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__


class IngestionError(CoordinationError):
    """Fuente de planilla inválida, vacía o inaccesible (el usuario debe reintentar)."""

    code = "ingestion"


class ParseError(IngestionError):
    """La planilla no pudo decodificarse (caso particular de IngestionError)."""

    code = "parse"


class PermissionDeniedError(CoordinationError):
    """El actor no está autorizado para la acción."""

    code = "permission"


class TransientWriteError(CoordinationError):
    """Falló la escritura en la base; el estado previo no cambió."""

    code = "transient_write"


class PostNotFoundError(CoordinationError):
    code = "not_found"


class InvalidTransitionError(CoordinationError):
    code = "invalid_transition"


class InvalidCommitmentError(CoordinationError):
    code = "invalid_input"


class ConfigError(CoordinationError):
    code = "invalid_config"


__all__ = [
    "CoordinationError",
    "IngestionError",
    "ParseError",
    "PermissionDeniedError",
    "TransientWriteError",
    "PostNotFoundError",
    "InvalidTransitionError",
    "InvalidCommitmentError",
    "ConfigError",
]
