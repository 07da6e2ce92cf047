# Nombre de archivo: runner.py
# Ubicación de archivo: api/app/runner.py
# Descripción: Arranque del servidor Uvicorn para la API de coordinación

from __future__ import annotations

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "api.app.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
