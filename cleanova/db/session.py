# cleanova/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cleanova.core.config import settings


def build_engine(uri: str):
    """
    Crea el motor de SQLAlchemy. SQLite en memoria comparte una única conexión
    entre hilos para que todas las sesiones vean las mismas tablas.
    """
    if uri.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if uri in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(uri, **kwargs)
    return create_engine(uri, pool_pre_ping=True)


# Se crea el motor (engine) de SQLAlchemy usando la URI de la configuración.
engine = build_engine(settings.DATABASE_URI)

# Se crea una fábrica de sesiones que se usará para crear sesiones individuales.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """
    Función de dependencia para obtener una sesión de base de datos.
    Asegura que la sesión se cierre siempre después de la petición.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
