# cleanova/models/catalog.py
import uuid

from sqlalchemy import Column, ForeignKey, Integer, String, Text, TIMESTAMP, func
from sqlalchemy.orm import relationship

from cleanova.db.base import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    videos = relationship("Video", back_populates="category")


class Video(Base):
    """
    Video del catálogo. `video_url` y `thumbnail_url` son rutas nominales dentro
    del bucket; `storage_key`, cuando existe, identifica el objeto exacto.
    """
    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    video_url = Column(String(500), nullable=False, server_default="")
    thumbnail_url = Column(String(500))
    storage_key = Column(String(500), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    category = relationship("Category", back_populates="videos")
