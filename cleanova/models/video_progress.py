# cleanova/models/video_progress.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from cleanova.db.base import Base


class UserVideoProgress(Base):
    """
    Modelo para el seguimiento del progreso de visualización de videos.
    Un único registro por par (usuario, video).
    """
    __tablename__ = "user_video_progress"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    progress_seconds = Column(Integer, default=0, server_default="0", nullable=False)
    is_completed = Column(Boolean, default=False, server_default="false", nullable=False)
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_user_video"),
    )

    def __repr__(self):
        return (
            f"<UserVideoProgress(user_id={self.user_id}, video_id='{self.video_id}', "
            f"seconds={self.progress_seconds}, completed={self.is_completed})>"
        )
