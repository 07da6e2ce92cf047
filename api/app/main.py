# Nombre de archivo: main.py
# Ubicación de archivo: api/app/main.py
# Descripción: Aplicación FastAPI principal (avisos, cuadrillas, administración y suscripciones en vivo)

from fastapi import FastAPI

from api.app.routes import admin, health, live, posts, squads
from core.config import get_settings
from core.logging import setup_logging
from core.middlewares import RequestIDMiddleware


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging("api", settings.log_level)
    app = FastAPI(title="Red de Ayuda API", version=settings.build_version)
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health.router, tags=["health"])
    app.include_router(posts.router)
    app.include_router(squads.router)
    app.include_router(admin.router)
    app.include_router(live.router)
    return app


app = create_app()
