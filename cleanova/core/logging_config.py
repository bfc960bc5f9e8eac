import logging
import logging.config
import json
from datetime import datetime
from typing import Dict, Any
from pathlib import Path

from cleanova.core.config import settings


class StructuredFormatter(logging.Formatter):
    """
    Formatter que genera logs en formato JSON estructurado
    para facilitar la integración con sistemas de monitoreo
    """

    CONTEXT_FIELDS = (
        "service",
        "endpoint",
        "method",
        "status_code",
        "response_time_ms",
        "request_id",
        "user_id",
        "video_id",
        "session_id",
        "operation",
        "success",
    )

    def format(self, record: logging.LogRecord) -> str:
        """
        Formatea el registro de log como JSON estructurado
        """
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "thread": record.thread,
        }

        # Agregar información adicional si está disponible
        for field in self.CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        # Agregar información de excepción si existe
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def _rotating(filename: str, level: str, backups: int = 10) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "structured",
        "filename": filename,
        "maxBytes": 10485760,  # 10MB
        "backupCount": backups,
        "level": level,
    }


def setup_logging(log_dir: str = None) -> None:
    """
    Configura el sistema de logging con rotación y formato estructurado
    para integración con sistemas de monitoreo
    """
    # Crear directorio de logs si no existe
    log_path = Path(log_dir or settings.LOG_DIR)
    log_path.mkdir(parents=True, exist_ok=True)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
            },
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "level": "INFO",
                "stream": "ext://sys.stdout"
            },
            "file_all": _rotating(str(log_path / "app.log"), "INFO"),
            "file_errors": _rotating(str(log_path / "errors.log"), "ERROR"),
            "file_playback": _rotating(str(log_path / "playback.log"), "INFO", backups=5),
            "file_api": _rotating(str(log_path / "api.log"), "INFO"),
        },
        "loggers": {
            "cleanova": {
                "level": "INFO",
                "handlers": ["console", "file_all", "file_errors"],
                "propagate": False
            },
            "cleanova.services": {
                "level": "INFO",
                "handlers": ["console", "file_playback", "file_errors"],
                "propagate": False
            },
            "cleanova.api": {
                "level": "INFO",
                "handlers": ["console", "file_api", "file_errors"],
                "propagate": False
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console", "file_api"],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["file_api"],
                "propagate": False
            },
            "fastapi": {
                "level": "INFO",
                "handlers": ["console", "file_api"],
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console", "file_all"]
        }
    }

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger("cleanova")
    logger.info("Logging system initialized successfully")
    logger.info(f"Log files will be stored in: {log_path.absolute()}")


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter personalizado para agregar contexto adicional a los logs
    """

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """
        Procesa el mensaje y kwargs antes del logging
        """
        if self.extra:
            kwargs.setdefault("extra", {}).update(self.extra)

        return msg, kwargs


def get_playback_logger(**context: Any) -> LoggerAdapter:
    """
    Obtiene un logger para sesiones de reproducción y sincronización de progreso
    """
    base_logger = logging.getLogger("cleanova.services.playback")
    return LoggerAdapter(base_logger, {"service": "playback", **context})


def get_storage_logger() -> LoggerAdapter:
    """
    Obtiene un logger específico para operaciones de object storage
    """
    base_logger = logging.getLogger("cleanova.services.storage")
    return LoggerAdapter(base_logger, {"service": "storage"})


def get_api_logger() -> LoggerAdapter:
    """
    Obtiene un logger específico para operaciones de API
    """
    base_logger = logging.getLogger("cleanova.api")
    return LoggerAdapter(base_logger, {"service": "api"})


def log_api_request(logger: logging.Logger, method: str, endpoint: str,
                    status_code: int = None, response_time_ms: int = None,
                    user_id: str = None, **kwargs):
    """
    Registra información de una petición API con contexto estructurado

    Args:
        logger: Logger a usar
        method: Método HTTP
        endpoint: Endpoint accedido
        status_code: Código de respuesta HTTP
        response_time_ms: Tiempo de respuesta en millisegundos
        user_id: ID del usuario (si está autenticado)
        **kwargs: Información adicional
    """
    extra = {
        "method": method,
        "endpoint": endpoint,
        "service": "api"
    }

    if status_code:
        extra["status_code"] = status_code
    if response_time_ms is not None:
        extra["response_time_ms"] = response_time_ms
    if user_id:
        extra["user_id"] = user_id

    extra.update(kwargs)

    if status_code and status_code >= 500:
        logger.error(f"API request failed: {method} {endpoint}", extra=extra)
    else:
        logger.info(f"API request: {method} {endpoint}", extra=extra)


def log_progress_write(logger: logging.Logger, operation: str,
                       user_id: Any = None, video_id: str = None,
                       success: bool = True, **kwargs):
    """
    Registra el resultado de una escritura de progreso

    Args:
        logger: Logger a usar
        operation: insert, update o skip
        user_id: ID del usuario
        video_id: ID del video
        success: Si la operación fue exitosa
        **kwargs: Información adicional (segundos, completado, motivo)
    """
    extra = {
        "operation": operation,
        "success": success,
    }

    if user_id is not None:
        extra["user_id"] = user_id
    if video_id:
        extra["video_id"] = video_id

    extra.update(kwargs)

    if success:
        logger.info(f"Progress write {operation}: user={user_id}, video={video_id}", extra=extra)
    else:
        logger.error(f"Progress write {operation} failed: user={user_id}, video={video_id}", extra=extra)
