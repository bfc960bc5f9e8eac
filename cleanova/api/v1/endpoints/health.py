# cleanova/api/v1/endpoints/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from cleanova.core.config import settings
from cleanova.db.session import get_db

router = APIRouter()


def check_storage_service():
    """
    Verifica que el object storage esté configurado.
    """
    if not settings.STORAGE_URL:
        return {"status": "misconfigured", "message": "STORAGE_URL not found"}
    if not settings.STORAGE_SERVICE_KEY:
        return {"status": "misconfigured", "message": "STORAGE_SERVICE_KEY not found"}
    return {"status": "ready", "bucket": settings.STORAGE_BUCKET}


@router.get("/health", summary="Verifica el estado completo del servicio")
def check_health(db: Session = Depends(get_db)):
    """
    Endpoint de Health Check consolidado.
    Verifica que la API está activa, la conexión a base de datos y el storage.
    """
    health_status = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "database": {"status": "unknown"},
            "storage": {"status": "unknown"},
        }
    }

    try:
        db.execute(text("SELECT 1"))
        health_status["services"]["database"] = {"status": "healthy"}
    except Exception as e:
        health_status["services"]["database"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "unhealthy"
        raise HTTPException(status_code=503, detail=health_status)

    storage_status = check_storage_service()
    health_status["services"]["storage"] = storage_status
    if storage_status["status"] != "ready":
        health_status["status"] = "degraded"

    return health_status
