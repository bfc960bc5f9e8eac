from typing import Dict, Iterable, List, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from cleanova.models.video_progress import UserVideoProgress


def get_progress(db: Session, user_id: int, video_id: str) -> Optional[UserVideoProgress]:
    """
    Busca el progreso existente de un usuario para un video.
    """
    return db.query(UserVideoProgress).filter(
        and_(
            UserVideoProgress.user_id == user_id,
            UserVideoProgress.video_id == video_id
        )
    ).first()


def get_user_progress(db: Session, user_id: int) -> List[UserVideoProgress]:
    return (
        db.query(UserVideoProgress)
        .filter(UserVideoProgress.user_id == user_id)
        .order_by(UserVideoProgress.video_id)
        .all()
    )


def get_progress_map(db: Session, user_id: int, video_ids: Iterable[str]) -> Dict[str, UserVideoProgress]:
    """
    Progreso del usuario indexado por video para una lista de videos.
    """
    video_ids = list(video_ids)
    if not video_ids:
        return {}
    records = db.query(UserVideoProgress).filter(
        and_(
            UserVideoProgress.user_id == user_id,
            UserVideoProgress.video_id.in_(video_ids)
        )
    ).all()
    return {record.video_id: record for record in records}


def insert_progress(db: Session, user_id: int, video_id: str,
                    progress_seconds: int, is_completed: bool) -> UserVideoProgress:
    progress = UserVideoProgress(
        user_id=user_id,
        video_id=video_id,
        progress_seconds=progress_seconds,
        is_completed=is_completed,
    )
    db.add(progress)
    db.commit()
    db.refresh(progress)
    return progress


def update_progress(db: Session, user_id: int, video_id: str,
                    progress_seconds: int, is_completed: bool) -> int:
    """
    Actualiza en sitio el registro (usuario, video). Devuelve las filas afectadas.
    """
    updated = db.query(UserVideoProgress).filter(
        and_(
            UserVideoProgress.user_id == user_id,
            UserVideoProgress.video_id == video_id
        )
    ).update(
        {
            UserVideoProgress.progress_seconds: progress_seconds,
            UserVideoProgress.is_completed: is_completed,
        },
        synchronize_session=False,
    )
    db.commit()
    return updated
