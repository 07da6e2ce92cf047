# Nombre de archivo: middlewares.py
# Ubicación de archivo: core/middlewares.py
# Descripción: Middleware de trazabilidad (X-Request-ID) para la API

import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from core.logging import request_id_var

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Genera (o respeta el entrante) y propaga un identificador de solicitud."""

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
            logger.debug(
                "action=request path=%s status=%s", request.url.path, response.status_code
            )
        finally:
            request_id_var.reset(token)
        response.headers[self.header_name] = request_id
        return response
