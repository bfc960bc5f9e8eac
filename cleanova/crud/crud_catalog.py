import re
from typing import Dict, List, Optional

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from cleanova.models.catalog import Category, Video


def slugify(name: str) -> str:
    """
    Convierte el nombre de una categoría en slug: minúsculas y espacios a guiones.
    """
    return re.sub(r"\s+", "-", name.lower())


def get_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.id).all()


def get_category_slug_map(db: Session) -> Dict[int, str]:
    return {category.id: slugify(category.name) for category in get_categories(db)}


def get_category_by_slug(db: Session, slug: str) -> Optional[Category]:
    """
    Busca la categoría cuyo nombre coincide (sin distinguir mayúsculas) con el
    slug, tratando los guiones como espacios.
    """
    name = slug.replace("-", " ").lower()
    return db.query(Category).filter(func.lower(Category.name) == name).first()


def create_category(db: Session, name: str) -> Category:
    db_category = Category(name=name)
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    return db_category


def get_video(db: Session, video_id: str) -> Optional[Video]:
    return db.query(Video).filter(Video.id == video_id).first()


def get_latest_videos(db: Session, limit: int = 6) -> List[Video]:
    """
    Obtiene los videos más recientes para el dashboard.
    """
    return db.query(Video).order_by(desc(Video.created_at), Video.id).limit(limit).all()


def get_videos_by_category(db: Session, category_id: int) -> List[Video]:
    return (
        db.query(Video)
        .filter(Video.category_id == category_id)
        .order_by(Video.created_at, Video.id)
        .all()
    )


def get_recommendations(db: Session, video: Video, limit: int = 3) -> List[Video]:
    """
    Otros videos de la misma categoría, excluyendo el actual.
    """
    return (
        db.query(Video)
        .filter(Video.category_id == video.category_id, Video.id != video.id)
        .order_by(Video.id)
        .limit(limit)
        .all()
    )


def create_video(
    db: Session,
    title: str,
    category_id: int,
    video_url: str,
    thumbnail_url: str = None,
    description: str = None,
    storage_key: str = None,
) -> Video:
    db_video = Video(
        title=title,
        category_id=category_id,
        video_url=video_url,
        thumbnail_url=thumbnail_url,
        description=description,
        storage_key=storage_key,
    )
    db.add(db_video)
    db.commit()
    db.refresh(db_video)
    return db_video
