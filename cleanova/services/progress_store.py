from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session, sessionmaker

from cleanova.crud import crud_progress, crud_user
from cleanova.services.progress_sync import ProgressWrite


class SqlProgressStore:
    """
    Almacén de progreso sobre la tabla user_video_progress. Cada operación abre
    su propia sesión, ya que se invoca tanto desde peticiones como desde el
    timer de respaldo.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def find_by_user_and_video(self, user_id: int, video_id: str) -> Optional[Dict[str, Any]]:
        db = self.session_factory()
        try:
            progress = crud_progress.get_progress(db, user_id, video_id)
            if progress is None:
                return None
            return {
                "id": progress.id,
                "progress_seconds": progress.progress_seconds,
                "is_completed": progress.is_completed,
            }
        finally:
            db.close()

    def insert(self, record: ProgressWrite) -> None:
        db = self.session_factory()
        try:
            crud_progress.insert_progress(
                db,
                user_id=record.user_id,
                video_id=record.video_id,
                progress_seconds=record.progress_seconds,
                is_completed=record.is_completed,
            )
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def update(self, user_id: int, video_id: str, fields: Dict[str, Any]) -> None:
        db = self.session_factory()
        try:
            crud_progress.update_progress(
                db,
                user_id=user_id,
                video_id=video_id,
                progress_seconds=fields["progress_seconds"],
                is_completed=fields["is_completed"],
            )
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def subscriber_identity(session_factory: sessionmaker, user_id: int) -> Callable[[], Optional[int]]:
    """
    Colaborador de autenticación para el sincronizador: vuelve a leer al usuario
    en cada escritura y no devuelve identidad si ya no está activo o suscrito.
    """
    def current_user() -> Optional[int]:
        db = session_factory()
        try:
            return crud_user.get_active_subscriber_id(db, user_id)
        finally:
            db.close()

    return current_user
