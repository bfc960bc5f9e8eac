import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from prometheus_client import Gauge
from sqlalchemy.orm import Session, sessionmaker

from cleanova.core.config import settings
from cleanova.core.logging_config import get_playback_logger
from cleanova.crud import crud_progress
from cleanova.db.session import SessionLocal
from cleanova.models.catalog import Video
from cleanova.models.user import User
from cleanova.services.asset_resolver import SignedAssetResolver
from cleanova.services.playback_session import PlaybackSession, PriorProgress, VideoDescriptor
from cleanova.services.progress_store import SqlProgressStore, subscriber_identity

logger = get_playback_logger()

playback_sessions_active = Gauge(
    "cleanova_playback_sessions_active",
    "Playback sessions currently registered"
)


@dataclass
class _Entry:
    session: PlaybackSession
    last_seen: float


class PlaybackRegistry:
    """
    Sesiones de reproducción vivas, indexadas por ID. Además ejecuta el timer
    de respaldo que persiste la posición de las sesiones en reproducción y
    descarta las sesiones inactivas.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal,
                 backstop_interval: float = None, idle_seconds: float = None,
                 clock: Callable[[], float] = time.monotonic):
        self.session_factory = session_factory
        self.backstop_interval = backstop_interval or settings.PROGRESS_BACKSTOP_INTERVAL_SECONDS
        self.idle_seconds = idle_seconds or settings.PLAYBACK_SESSION_IDLE_SECONDS
        self.clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def open(self, db: Session, video: Video, user: User,
             resolver: SignedAssetResolver) -> PlaybackSession:
        """
        Resuelve las URLs firmadas, carga el progreso previo y monta la sesión.
        """
        resolved = resolver.resolve(video)
        record = crud_progress.get_progress(db, user.id, video.id)
        prior = None
        if record is not None:
            prior = PriorProgress(progress_seconds=record.progress_seconds,
                                  is_completed=record.is_completed)

        session = PlaybackSession(
            VideoDescriptor(
                id=video.id,
                video_url=resolved.video_url,
                thumbnail_url=resolved.thumbnail_url,
                title=video.title,
            ),
            prior,
            store=SqlProgressStore(self.session_factory),
            current_user=subscriber_identity(self.session_factory, user.id),
            owner_id=user.id,
        )
        session.mount()

        with self._lock:
            self._entries[session.session_id] = _Entry(session, self.clock())
            playback_sessions_active.set(len(self._entries))

        logger.info(
            f"Sesión {session.session_id} abierta: user={user.id}, video={video.id}, "
            f"fase={session.phase.value}"
        )
        return session

    def get(self, session_id: str, owner_id: int) -> Optional[PlaybackSession]:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None or entry.session.owner_id != owner_id:
                return None
            entry.last_seen = self.clock()
            return entry.session

    def retry(self, session: PlaybackSession, video: Video,
              resolver: SignedAssetResolver) -> int:
        """
        Vuelve a resolver el medio (puede haberse corregido fuera de banda) y
        reintenta la carga.
        """
        resolved = resolver.resolve(video)
        return session.retry(video_url=resolved.video_url)

    def close(self, session_id: str, owner_id: int) -> bool:
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None or entry.session.owner_id != owner_id:
                return False
            del self._entries[session_id]
            playback_sessions_active.set(len(self._entries))
        logger.info(f"Sesión {session_id} cerrada")
        return True

    def evict_idle(self) -> int:
        now = self.clock()
        with self._lock:
            stale = [sid for sid, entry in self._entries.items()
                     if now - entry.last_seen >= self.idle_seconds]
            for sid in stale:
                del self._entries[sid]
            playback_sessions_active.set(len(self._entries))
        if stale:
            logger.info(f"{len(stale)} sesiones inactivas descartadas")
        return len(stale)

    def run_backstop_once(self) -> int:
        """
        Una pasada del timer de respaldo. Devuelve cuántas escrituras se hicieron.
        """
        self.evict_idle()
        with self._lock:
            sessions = [entry.session for entry in self._entries.values()]
        return sum(1 for session in sessions if session.backstop_tick())

    async def backstop_loop(self) -> None:
        logger.info(f"Timer de respaldo iniciado (cada {self.backstop_interval}s)")
        while True:
            await asyncio.sleep(self.backstop_interval)
            try:
                await asyncio.to_thread(self.run_backstop_once)
            except Exception as e:
                logger.error(f"Error en el timer de respaldo: {e}", exc_info=True)


playback_registry = PlaybackRegistry()


def get_playback_registry() -> PlaybackRegistry:
    return playback_registry
