# cleanova/main.py
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cleanova.api.v1.endpoints import auth, catalog, health, metrics, playback, progress
from cleanova.core.config import settings
from cleanova.core.logging_config import setup_logging
from cleanova.services.playback_registry import playback_registry
from middleware.request_logging import RequestLoggingMiddleware

# Configurar logging al inicio de la aplicacion
setup_logging()
logger = logging.getLogger("cleanova")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Timer de respaldo para el progreso de las sesiones en reproducción
    backstop = asyncio.create_task(playback_registry.backstop_loop())
    try:
        yield
    finally:
        backstop.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await backstop


app = FastAPI(
    title="Cleanova API",
    description="""
    ## Backend API para Cleanova

    **Servicios Disponibles:**
    - **Health Check**: Monitoreo de estado de servicios
    - **Authentication**: Login con email/password y verificación de suscripción
    - **Catalog**: Categorías y videos con URLs firmadas
    - **Progress**: Progreso de visualización por usuario y video
    - **Playback**: Sesiones de reproducción con reanudación y reintentos
    - **Metrics**: Métricas Prometheus
    """,
    version="1.0.0",
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

logger.info("Cleanova API starting up")

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Incluir rutas
app.include_router(health.router, prefix="/api/v1", tags=["Health Check"])
app.include_router(auth.router, prefix="/api/v1", tags=["Authentication"])
app.include_router(catalog.router, prefix="/api/v1", tags=["Catalog"])
app.include_router(progress.router, prefix="/api/v1/progress", tags=["Progress"])
app.include_router(playback.router, prefix="/api/v1/playback", tags=["Playback"])
app.include_router(metrics.router, tags=["Metrics"])


@app.get("/")
async def root():
    return {
        "message": "Bienvenido al Backend de Cleanova",
        "status": "operativo",
        "version": "1.0.0",
        "docs": "/docs",
        "available_services": ["health", "auth", "catalog", "progress", "playback", "metrics"],
        "authentication_endpoints": {
            "login_email": "/api/v1/auth/token",
            "subscribe_info": "/api/v1/subscribe-info",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
