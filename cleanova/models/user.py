# cleanova/models/user.py
from sqlalchemy import Boolean, Column, Integer, String, TIMESTAMP, func

from cleanova.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, server_default="true", nullable=False)
    # Solo los usuarios suscritos pueden ver el catálogo de videos
    is_subscribed = Column(Boolean, default=False, server_default="false", nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', subscribed={self.is_subscribed})>"
