# Nombre de archivo: __init__.py
# Ubicación de archivo: api/app/routes/__init__.py
# Descripción: Init del paquete routes

"""Routers de la API de coordinación.

Cada módulo expone un ``router`` que ``api.app.main`` registra en la app.
"""

from . import admin, health, live, posts, squads

__all__ = ["admin", "health", "live", "posts", "squads"]
