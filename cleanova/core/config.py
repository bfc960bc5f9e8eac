# cleanova/core/config.py
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn, computed_field


class Settings(BaseSettings):
    """
    Gestiona la configuración de la aplicación cargando variables de entorno.
    Utiliza Pydantic para la validación de tipos.
    """
    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_case=True, extra="ignore"
    )

    # Variables de la base de datos leídas desde el archivo .env
    POSTGRES_USER: str = "cleanova"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_DB: str = "cleanova"
    POSTGRES_PORT: int = 5432
    # URI completa; si existe tiene prioridad sobre las variables POSTGRES_*
    DATABASE_URL: Optional[str] = None

    # --- JWT Settings ---
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Object Storage (API compatible con Supabase Storage) ---
    STORAGE_URL: str = ""
    STORAGE_SERVICE_KEY: str = ""
    STORAGE_BUCKET: str = "cleanova-videos"
    STORAGE_TIMEOUT_SECONDS: float = 10.0
    SIGNED_URL_TTL_SECONDS: int = 3600

    # --- Playback ---
    PROGRESS_BACKSTOP_INTERVAL_SECONDS: int = 30
    PLAYBACK_SESSION_IDLE_SECONDS: int = 3600

    # --- Logging / HTTP ---
    LOG_DIR: str = "logs"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    @computed_field
    @property
    def DATABASE_URI(self) -> str:
        """
        Genera la URI de conexión a la base de datos en formato SQLAlchemy.
        Pydantic validará que la URI construida sea correcta.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        dsn = PostgresDsn.build(
            scheme="postgresql+psycopg2",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )
        return str(dsn)


# Instancia única de la configuración que será usada en toda la aplicación.
settings = Settings()
