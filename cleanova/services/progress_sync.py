"""
Sincronización del progreso de reproducción con el almacén de progreso.

El sincronizador decide en cada evento si corresponde escribir la posición
actual. Todas las escrituras pasan por `persist`, que hace el upsert
(buscar, luego actualizar o insertar) bajo un lock, de modo que el timer de
respaldo y los eventos del reproductor nunca se solapan sobre el mismo registro.
"""
import math
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from prometheus_client import Counter

from cleanova.core.logging_config import get_playback_logger, log_progress_write

# Duración de referencia mientras el medio no informa su duración real
NOMINAL_DURATION_SECONDS = 120
PERSIST_INTERVAL_SECONDS = 30
COMPLETION_THRESHOLD_PERCENT = 95

progress_writes_total = Counter(
    "cleanova_progress_writes_total",
    "Progress store writes by operation",
    ["operation"]
)


def is_valid_seconds(value: Any) -> bool:
    """Número real, finito y no negativo."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def effective_duration(duration: Optional[float] = None) -> float:
    if is_valid_seconds(duration) and duration > 0:
        return float(duration)
    return float(NOMINAL_DURATION_SECONDS)


def playback_fraction_percent(elapsed: float, duration: Optional[float] = None) -> float:
    return elapsed / effective_duration(duration) * 100


def progress_percent(elapsed: float, duration: Optional[float] = None) -> int:
    """
    min(100, round(elapsed / duración * 100)), redondeando .5 hacia arriba.
    """
    if not is_valid_seconds(elapsed):
        return 0
    return min(100, int(math.floor(playback_fraction_percent(elapsed, duration) + 0.5)))


def display_percent(elapsed: float, completed: bool, duration: Optional[float] = None) -> int:
    if completed:
        return 100
    return progress_percent(elapsed, duration)


@dataclass
class PlaybackError:
    category: str
    message: str


@dataclass
class PlaybackState:
    """Estado efímero de una sesión de reproducción."""
    elapsed_seconds: float = 0.0
    completed: bool = False
    last_persisted_seconds: float = 0.0
    loading: bool = False
    error: Optional[PlaybackError] = None
    retry_count: int = 0
    duration_seconds: Optional[float] = None


@dataclass(frozen=True)
class ProgressWrite:
    user_id: Any
    video_id: str
    progress_seconds: int
    is_completed: bool


class ProgressStore(Protocol):
    def find_by_user_and_video(self, user_id: Any, video_id: str) -> Optional[Any]: ...

    def insert(self, record: ProgressWrite) -> None: ...

    def update(self, user_id: Any, video_id: str, fields: Dict[str, Any]) -> None: ...


class ProgressSynchronizer:
    """
    Decide cuándo persistir la posición de reproducción de un video.

    Disparadores independientes: umbral periódico (30 s desde la última
    escritura), umbral de completitud (95 %), pausa, seek, fin del medio y el
    timer de respaldo mientras se reproduce. Si no hay usuario autenticado o la
    posición no es válida, la escritura se omite sin error.
    """

    def __init__(self, store: ProgressStore, current_user: Callable[[], Optional[Any]],
                 video_id: str, state: PlaybackState,
                 interval_seconds: float = PERSIST_INTERVAL_SECONDS,
                 logger=None):
        self.store = store
        self.current_user = current_user
        self.video_id = video_id
        self.state = state
        self.interval_seconds = interval_seconds
        self.logger = logger or get_playback_logger(video_id=video_id)
        self._lock = threading.Lock()

    def on_time_advance(self, elapsed: float) -> List[str]:
        """
        Evalúa los umbrales de completitud y periódico. Devuelve los
        disparadores que emitieron una escritura.
        """
        if not is_valid_seconds(elapsed):
            return []

        fired = []
        duration = self.state.duration_seconds
        if (not self.state.completed
                and playback_fraction_percent(elapsed, duration) >= COMPLETION_THRESHOLD_PERCENT):
            self.state.completed = True
            self.persist(elapsed, True)
            fired.append("completion")

        if abs(elapsed - self.state.last_persisted_seconds) >= self.interval_seconds:
            self.persist(elapsed, self.state.completed)
            fired.append("periodic")
        return fired

    def on_pause(self, elapsed: float) -> bool:
        return self.persist(elapsed, self.state.completed)

    def on_seek(self, elapsed: float) -> bool:
        return self.persist(elapsed, self.state.completed)

    def on_end(self, duration: float) -> bool:
        self.state.completed = True
        return self.persist(duration, True)

    def on_backstop(self, elapsed: float, playing: bool) -> bool:
        """
        Escritura del timer de respaldo. Si la posición no avanzó desde la
        última escritura (cliente desconectado en 'playing') no se reescribe.
        """
        if not playing:
            return False
        if elapsed == self.state.last_persisted_seconds:
            return False
        return self.persist(elapsed, self.state.completed)

    def persist(self, elapsed: float, completed: bool) -> bool:
        """
        Upsert del registro (usuario, video). La marca de última escritura solo
        avanza si la escritura tuvo éxito.
        """
        if not is_valid_seconds(elapsed):
            self.logger.debug(f"Posición inválida, escritura omitida: {elapsed!r}")
            return False

        with self._lock:
            try:
                user_id = self.current_user()
            except Exception as e:
                self.logger.error(f"Error obteniendo el usuario actual: {e}")
                return False

            if user_id is None:
                progress_writes_total.labels(operation="skipped").inc()
                self.logger.debug("Sin usuario autenticado, progreso no guardado")
                return False

            record = ProgressWrite(
                user_id=user_id,
                video_id=self.video_id,
                progress_seconds=int(math.floor(elapsed)),
                is_completed=bool(completed),
            )

            try:
                existing = self.store.find_by_user_and_video(user_id, self.video_id)
            except Exception as e:
                progress_writes_total.labels(operation="failed").inc()
                log_progress_write(self.logger, "lookup", user_id, self.video_id,
                                   success=False, reason=str(e))
                return False

            operation = "update" if existing is not None else "insert"
            try:
                if existing is not None:
                    self.store.update(user_id, self.video_id, {
                        "progress_seconds": record.progress_seconds,
                        "is_completed": record.is_completed,
                    })
                else:
                    self.store.insert(record)
            except Exception as e:
                progress_writes_total.labels(operation="failed").inc()
                log_progress_write(self.logger, operation, user_id, self.video_id,
                                   success=False, reason=str(e))
                return False

            self.state.last_persisted_seconds = elapsed
            progress_writes_total.labels(operation=operation).inc()
            log_progress_write(self.logger, operation, user_id, self.video_id,
                               seconds=record.progress_seconds,
                               completed=record.is_completed)
            return True
