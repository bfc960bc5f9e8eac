# cleanova/db/models_registry.py
# Este archivo importa todos los modelos para que Alembic y create_all los detecten
from cleanova.db.base import Base
from cleanova.models.user import User
from cleanova.models.catalog import Category, Video
from cleanova.models.video_progress import UserVideoProgress

__all__ = ["Base", "User", "Category", "Video", "UserVideoProgress"]
