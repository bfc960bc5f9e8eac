from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProgressBase(BaseModel):
    """Progreso persistido de un usuario sobre un video."""
    progress_seconds: int = Field(..., ge=0, description="Segundos reproducidos (entero)")
    is_completed: bool = Field(False, description="Si el video se marcó como visto")


class ProgressResponse(ProgressBase):
    """Schema para consultar el progreso actual."""
    video_id: str
    percent: int = Field(..., ge=0, le=100, description="Porcentaje mostrado al usuario")
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "video_id": "8f0c0c1e-6c55-4f0e-9a47-2f1f3f3b1a11",
            "progress_seconds": 45,
            "is_completed": False,
            "percent": 38,
            "last_updated": "2025-11-26T10:30:00Z"
        }
    })
