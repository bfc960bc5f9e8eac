from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MediaEventType(str, Enum):
    """Eventos del elemento de video que el cliente reporta a la API."""
    loadstart = "loadstart"
    loadeddata = "loadeddata"
    canplay = "canplay"
    durationchange = "durationchange"
    play = "play"
    timeupdate = "timeupdate"
    pause = "pause"
    seeked = "seeked"
    ended = "ended"
    error = "error"


class PlaybackSessionCreate(BaseModel):
    video_id: str = Field(..., max_length=36, description="Identificador del video a reproducir")


class MediaEvent(BaseModel):
    """Schema para un evento de reproducción."""
    type: MediaEventType
    generation: int = Field(..., ge=0, description="Generación de carga a la que pertenece el evento")
    current_time: Optional[float] = Field(None, description="Posición actual en segundos")
    duration: Optional[float] = Field(None, description="Duración real reportada por el medio")
    error_code: Optional[int] = None
    error_message: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "type": "timeupdate",
            "generation": 0,
            "current_time": 47.3
        }
    })


class PlaybackErrorOut(BaseModel):
    category: str
    message: str


class PlaybackSnapshot(BaseModel):
    """Estado visible de una sesión de reproducción."""
    session_id: str
    video_id: str
    title: Optional[str] = None
    phase: str
    generation: int
    media_url: Optional[str] = None
    poster_url: Optional[str] = None
    elapsed_seconds: float
    duration_seconds: float
    percent: int
    is_completed: bool
    last_persisted_seconds: float
    loading: bool
    retry_count: int
    error: Optional[PlaybackErrorOut] = None


class MediaEventResult(PlaybackSnapshot):
    accepted: bool
    seek_to: Optional[float] = None
