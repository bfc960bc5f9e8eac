# MIDDLEWARE DE LOGGING DE PETICIONES
# Registra cada petición con su ID, duración y código de respuesta, y alimenta
# las métricas de Prometheus del API

import time
import json
import uuid
import logging

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from cleanova.api.v1.endpoints.metrics import record_request
from cleanova.core.logging_config import log_api_request

logger = logging.getLogger("cleanova.api.requests")

UNMATCHED_ENDPOINT = "unmatched"


def generate_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def endpoint_label(request: Request) -> str:
    """
    Plantilla de la ruta resuelta (p. ej. /api/v1/playback/sessions/{session_id})
    para no crear una serie por cada ID.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ENDPOINT


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = generate_request_id()
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - started
            logger.exception(f"Excepción no controlada en {request.method} {request.url.path}")
            record_request(request.method, endpoint_label(request), 500, elapsed)
            log_api_request(logger, request.method, request.url.path, status_code=500,
                            response_time_ms=int(elapsed * 1000), request_id=request_id)
            response = Response(
                content=json.dumps({"error": "Internal server error", "request_id": request_id}),
                status_code=500,
                media_type="application/json"
            )
            response.headers["X-Request-ID"] = request_id
            return response

        elapsed = time.perf_counter() - started
        record_request(request.method, endpoint_label(request), response.status_code, elapsed)
        log_api_request(logger, request.method, request.url.path,
                        status_code=response.status_code,
                        response_time_ms=int(elapsed * 1000), request_id=request_id)
        response.headers["X-Request-ID"] = request_id
        return response
