# cleanova/api/v1/endpoints/progress.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cleanova.core.deps import get_current_subscriber
from cleanova.crud import crud_progress
from cleanova.db.session import get_db
from cleanova.models.user import User
from cleanova.models.video_progress import UserVideoProgress
from cleanova.schemas.video_progress import ProgressResponse
from cleanova.services.progress_sync import display_percent

router = APIRouter()


def _to_response(progress: UserVideoProgress) -> ProgressResponse:
    return ProgressResponse(
        video_id=progress.video_id,
        progress_seconds=progress.progress_seconds,
        is_completed=progress.is_completed,
        percent=display_percent(progress.progress_seconds, progress.is_completed),
        last_updated=progress.last_updated,
    )


@router.get(
    "",
    response_model=List[ProgressResponse],
    summary="Progreso del usuario en todos los videos"
)
def list_progress(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_subscriber),
):
    return [_to_response(p) for p in crud_progress.get_user_progress(db, user.id)]


@router.get(
    "/{video_id}",
    response_model=ProgressResponse,
    summary="Consultar progreso actual",
    description="Obtiene el progreso de visualización del usuario autenticado para un video."
)
def get_progress(
    video_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_subscriber),
):
    progress = crud_progress.get_progress(db, user.id, video_id)
    if not progress:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No se encontró progreso para este usuario y video"
        )
    return _to_response(progress)
