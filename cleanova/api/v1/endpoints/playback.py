# cleanova/api/v1/endpoints/playback.py
"""
Sesiones de reproducción. El cliente abre una sesión por video, reporta los
eventos del elemento de video y recibe el estado resultante (incluido el seek
inicial al reanudar).
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from cleanova.core.deps import get_current_subscriber
from cleanova.core.logging_config import get_api_logger
from cleanova.crud import crud_catalog
from cleanova.db.session import get_db
from cleanova.models.user import User
from cleanova.schemas.playback import (
    MediaEvent,
    MediaEventResult,
    PlaybackSessionCreate,
    PlaybackSnapshot,
)
from cleanova.services.asset_resolver import SignedAssetResolver, get_asset_resolver
from cleanova.services.playback_registry import PlaybackRegistry, get_playback_registry
from cleanova.services.playback_session import PlaybackSession, PlaybackTransitionError

router = APIRouter()
logger = get_api_logger()


def _session_or_404(registry: PlaybackRegistry, session_id: str, user: User) -> PlaybackSession:
    session = registry.get(session_id, user.id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sesión de reproducción no encontrada"
        )
    return session


@router.post(
    "/sessions",
    response_model=PlaybackSnapshot,
    status_code=status.HTTP_201_CREATED,
    summary="Abrir sesión de reproducción"
)
def open_session(
    request: PlaybackSessionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_subscriber),
    resolver: SignedAssetResolver = Depends(get_asset_resolver),
    registry: PlaybackRegistry = Depends(get_playback_registry),
):
    """
    Resuelve las URLs firmadas del video, siembra el progreso previo del
    usuario y monta la sesión (loading, o error si la URL es inválida).
    """
    video = crud_catalog.get_video(db, request.video_id)
    if not video:
        logger.info(f"Sesión solicitada para video inexistente: {request.video_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video no encontrado")
    session = registry.open(db, video, user, resolver)
    return session.snapshot()


@router.get("/sessions/{session_id}", response_model=PlaybackSnapshot, summary="Estado de la sesión")
def read_session(
    session_id: str,
    user: User = Depends(get_current_subscriber),
    registry: PlaybackRegistry = Depends(get_playback_registry),
):
    return _session_or_404(registry, session_id, user).snapshot()


@router.post(
    "/sessions/{session_id}/events",
    response_model=MediaEventResult,
    summary="Reportar evento del reproductor"
)
def report_event(
    session_id: str,
    event: MediaEvent,
    user: User = Depends(get_current_subscriber),
    registry: PlaybackRegistry = Depends(get_playback_registry),
):
    """
    - **type**: evento del elemento de video (timeupdate, pause, seeked, ...)
    - **generation**: generación de carga vigente cuando ocurrió el evento
    - **current_time**: posición en segundos
    """
    session = _session_or_404(registry, session_id, user)
    outcome = session.handle_event(
        event.type.value,
        event.generation,
        current_time=event.current_time,
        duration=event.duration,
        error_code=event.error_code,
        error_message=event.error_message,
    )
    return MediaEventResult(**session.snapshot(), accepted=outcome.accepted, seek_to=outcome.seek_to)


@router.post(
    "/sessions/{session_id}/retry",
    response_model=PlaybackSnapshot,
    summary="Reintentar la carga del video"
)
def retry_session(
    session_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_subscriber),
    resolver: SignedAssetResolver = Depends(get_asset_resolver),
    registry: PlaybackRegistry = Depends(get_playback_registry),
):
    session = _session_or_404(registry, session_id, user)
    video = crud_catalog.get_video(db, session.video.id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video no encontrado")
    try:
        registry.retry(session, video, resolver)
    except PlaybackTransitionError as e:
        logger.warning(f"Reintento rechazado en sesión {session_id}: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return session.snapshot()


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cerrar sesión de reproducción"
)
def close_session(
    session_id: str,
    user: User = Depends(get_current_subscriber),
    registry: PlaybackRegistry = Depends(get_playback_registry),
):
    if not registry.close(session_id, user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Sesión de reproducción no encontrada"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
