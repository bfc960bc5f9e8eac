"""
Máquina de estados de una sesión de reproducción.

    idle -> loading -> ready -> playing <-> paused -> ended
                  \\        \\        \\
                   +---------+--------+--> error --(retry)--> loading

Cada reintento incrementa la generación de carga; los eventos que llegan con
una generación anterior se descartan para que una carga vieja no pise el
estado de la nueva.
"""
import threading
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlsplit

from cleanova.core.logging_config import get_playback_logger
from cleanova.services.progress_sync import (
    PlaybackError,
    PlaybackState,
    ProgressStore,
    ProgressSynchronizer,
    display_percent,
    effective_duration,
    is_valid_seconds,
)


class Phase(str, Enum):
    idle = "idle"
    loading = "loading"
    ready = "ready"
    playing = "playing"
    paused = "paused"
    ended = "ended"
    error = "error"


class MediaErrorCategory(str, Enum):
    invalid_url = "invalid_url"
    unloadable = "unloadable"
    unplayable = "unplayable"
    undownloadable = "undownloadable"
    unsupported_format = "unsupported_format"
    unknown = "unknown"


# Códigos de MediaError del navegador
MEDIA_ERROR_CODES = {
    1: (MediaErrorCategory.unloadable, "El video no se pudo cargar"),
    2: (MediaErrorCategory.unplayable, "El video no se puede reproducir"),
    3: (MediaErrorCategory.undownloadable, "El video no se pudo descargar"),
    4: (MediaErrorCategory.unsupported_format, "Formato de video no soportado"),
}

INVALID_URL_MESSAGE = "invalid video URL"


class PlaybackTransitionError(Exception):
    """Transición explícita no permitida desde la fase actual."""


@dataclass(frozen=True)
class VideoDescriptor:
    id: str
    video_url: str
    thumbnail_url: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class PriorProgress:
    progress_seconds: int
    is_completed: bool = False


@dataclass(frozen=True)
class EventOutcome:
    accepted: bool
    seek_to: Optional[float] = None


def is_valid_media_url(url: Optional[str]) -> bool:
    if not url or not url.strip():
        return False
    url = url.strip()
    if any(ch.isspace() for ch in url):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def map_media_error(code: Optional[int], message: Optional[str] = None) -> PlaybackError:
    if code in MEDIA_ERROR_CODES:
        category, text = MEDIA_ERROR_CODES[code]
        return PlaybackError(category=category.value, message=text)
    return PlaybackError(
        category=MediaErrorCategory.unknown.value,
        message=f"Error: {message}" if message else "No se pudo cargar el video",
    )


class PlaybackSession:
    """
    Ciclo de vida de un único elemento de video: carga, error, seek, pausa y
    fin. Es dueña de su `PlaybackState` y de su sincronizador de progreso.
    """

    def __init__(self, video: VideoDescriptor, prior: Optional[PriorProgress] = None, *,
                 store: ProgressStore, current_user: Callable[[], Optional[Any]],
                 session_id: str = None, owner_id: Any = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.video = video
        self.owner_id = owner_id
        self.phase = Phase.idle
        self.generation = 0
        self.load_attempts = 0

        seed = float(prior.progress_seconds) if prior and is_valid_seconds(prior.progress_seconds) else 0.0
        self.state = PlaybackState(
            elapsed_seconds=seed,
            completed=bool(prior.is_completed) if prior else False,
            last_persisted_seconds=seed,
        )
        self.logger = get_playback_logger(session_id=self.session_id, video_id=video.id)
        self.synchronizer = ProgressSynchronizer(
            store, current_user, video.id, self.state, logger=self.logger
        )
        self._lock = threading.RLock()

    # -- derivados ---------------------------------------------------------

    @property
    def duration_seconds(self) -> float:
        return effective_duration(self.state.duration_seconds)

    @property
    def percent(self) -> int:
        return display_percent(self.state.elapsed_seconds, self.state.completed,
                               self.state.duration_seconds)

    @property
    def is_playing(self) -> bool:
        return self.phase == Phase.playing

    # -- transiciones explícitas ---------------------------------------------

    def mount(self) -> None:
        with self._lock:
            if self.phase != Phase.idle:
                raise PlaybackTransitionError(f"mount no permitido en fase '{self.phase.value}'")
            self._begin_load()

    def retry(self, video_url: str = None) -> int:
        """
        Error -> Loading con una nueva generación. Permite sustituir la URL del
        medio por una recién resuelta.
        """
        with self._lock:
            if self.phase != Phase.error:
                raise PlaybackTransitionError(f"retry no permitido en fase '{self.phase.value}'")
            if video_url is not None:
                self.video = replace(self.video, video_url=video_url)
            self.generation += 1
            self.state.retry_count += 1
            self.state.error = None
            self.logger.info(f"Reintentando carga (generación {self.generation})")
            self._begin_load()
            return self.generation

    def _begin_load(self) -> None:
        if not is_valid_media_url(self.video.video_url):
            self.phase = Phase.error
            self.state.loading = False
            self.state.error = PlaybackError(MediaErrorCategory.invalid_url.value, INVALID_URL_MESSAGE)
            self.logger.warning(f"URL de video inválida: {self.video.video_url!r}")
            return
        self.phase = Phase.loading
        self.state.loading = True
        self.state.error = None
        self.load_attempts += 1

    # -- eventos del medio ---------------------------------------------------

    def _is_current(self, generation: Optional[int]) -> bool:
        if generation is None or generation == self.generation:
            return True
        self.logger.debug(
            f"Evento de generación {generation} descartado (actual {self.generation})"
        )
        return False

    def on_load_start(self, generation: int = None) -> bool:
        with self._lock:
            if not self._is_current(generation) or self.phase != Phase.loading:
                return False
            self.state.loading = True
            self.state.error = None
            return True

    def on_loaded_data(self, generation: int = None) -> EventOutcome:
        """
        Loading -> Ready. Si hay una posición persistida, indica el seek inicial.
        """
        with self._lock:
            if not self._is_current(generation):
                return EventOutcome(False)
            if self.phase != Phase.loading:
                return EventOutcome(self.phase != Phase.error and self.phase != Phase.idle)
            self.phase = Phase.ready
            self.state.loading = False
            self.state.error = None

            offset = self.state.last_persisted_seconds
            if offset > 0:
                self.state.elapsed_seconds = offset
                self.logger.info(f"Reanudando en {offset:.0f}s")
                return EventOutcome(True, seek_to=offset)
            return EventOutcome(True)

    def on_duration(self, duration: float, generation: int = None) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return False
            if not is_valid_seconds(duration) or duration <= 0:
                return False
            self.state.duration_seconds = float(duration)
            return True

    def on_play(self, generation: int = None) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return False
            if self.phase not in (Phase.ready, Phase.paused, Phase.ended, Phase.playing):
                return False
            self.phase = Phase.playing
            return True

    def on_time_update(self, current_time: float, generation: int = None) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return False
            if self.phase not in (Phase.ready, Phase.playing, Phase.paused):
                return False
            if not is_valid_seconds(current_time):
                return False
            # Solo un seek explícito puede retroceder la posición
            if current_time > self.state.elapsed_seconds:
                self.state.elapsed_seconds = float(current_time)
            self.synchronizer.on_time_advance(self.state.elapsed_seconds)
            return True

    def on_pause(self, current_time: float = None, generation: int = None) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return False
            if self.phase not in (Phase.ready, Phase.playing, Phase.paused):
                return False
            if is_valid_seconds(current_time) and current_time > self.state.elapsed_seconds:
                self.state.elapsed_seconds = float(current_time)
            self.phase = Phase.paused
            self.synchronizer.on_pause(self.state.elapsed_seconds)
            return True

    def on_seeked(self, current_time: float, generation: int = None) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return False
            if self.phase not in (Phase.ready, Phase.playing, Phase.paused, Phase.ended):
                return False
            if not is_valid_seconds(current_time):
                return False
            self.state.elapsed_seconds = float(current_time)
            if self.phase == Phase.ended:
                self.phase = Phase.paused
            self.synchronizer.on_seek(self.state.elapsed_seconds)
            return True

    def on_ended(self, generation: int = None) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return False
            if self.phase not in (Phase.ready, Phase.playing, Phase.paused):
                return False
            self.phase = Phase.ended
            duration = self.duration_seconds
            self.state.elapsed_seconds = max(self.state.elapsed_seconds, duration)
            self.synchronizer.on_end(duration)
            return True

    def on_error(self, code: Optional[int] = None, message: str = None,
                 generation: int = None) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return False
            if self.phase not in (Phase.loading, Phase.ready, Phase.playing, Phase.paused):
                return False
            self.phase = Phase.error
            self.state.loading = False
            self.state.error = map_media_error(code, message)
            self.logger.warning(
                f"Error de reproducción ({self.state.error.category}): código={code}, {message}"
            )
            return True

    def backstop_tick(self) -> bool:
        """Escritura de respaldo del timer periódico; solo mientras se reproduce."""
        with self._lock:
            return self.synchronizer.on_backstop(self.state.elapsed_seconds, self.is_playing)

    def handle_event(self, event_type: str, generation: int, current_time: float = None,
                     duration: float = None, error_code: int = None,
                     error_message: str = None) -> EventOutcome:
        """
        Despacha un evento del elemento de video reportado por el cliente.
        """
        if duration is not None and event_type != "durationchange":
            self.on_duration(duration, generation)

        if event_type == "loadstart":
            return EventOutcome(self.on_load_start(generation))
        if event_type in ("loadeddata", "canplay"):
            return self.on_loaded_data(generation)
        if event_type == "durationchange":
            return EventOutcome(self.on_duration(duration, generation))
        if event_type == "play":
            return EventOutcome(self.on_play(generation))
        if event_type == "timeupdate":
            return EventOutcome(self.on_time_update(current_time, generation))
        if event_type == "pause":
            return EventOutcome(self.on_pause(current_time, generation))
        if event_type == "seeked":
            return EventOutcome(self.on_seeked(current_time, generation))
        if event_type == "ended":
            return EventOutcome(self.on_ended(generation))
        if event_type == "error":
            return EventOutcome(self.on_error(error_code, error_message, generation))
        raise ValueError(f"Evento desconocido: {event_type}")

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            error = None
            if self.state.error is not None:
                error = {"category": self.state.error.category, "message": self.state.error.message}
            return {
                "session_id": self.session_id,
                "video_id": self.video.id,
                "title": self.video.title,
                "phase": self.phase.value,
                "generation": self.generation,
                "media_url": None if self.phase in (Phase.idle, Phase.error) else self.video.video_url,
                "poster_url": self.video.thumbnail_url,
                "elapsed_seconds": self.state.elapsed_seconds,
                "duration_seconds": self.duration_seconds,
                "percent": self.percent,
                "is_completed": self.state.completed,
                "last_persisted_seconds": self.state.last_persisted_seconds,
                "loading": self.state.loading,
                "retry_count": self.state.retry_count,
                "error": error,
            }
