# cleanova/api/v1/endpoints/catalog.py
"""
Catálogo de videos para usuarios suscritos: categorías, últimos videos,
videos por categoría y detalle con recomendaciones. Todas las URLs de
video y miniatura se devuelven firmadas.
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cleanova.core.deps import get_current_subscriber
from cleanova.crud import crud_catalog, crud_progress
from cleanova.db.session import get_db
from cleanova.models.catalog import Video
from cleanova.models.user import User
from cleanova.models.video_progress import UserVideoProgress
from cleanova.schemas.catalog import (
    CategoryOut,
    CategoryVideos,
    RecommendationOut,
    VideoDetail,
    VideoSummary,
)
from cleanova.schemas.video_progress import ProgressBase
from cleanova.services.asset_resolver import AssetRender, SignedAssetResolver, get_asset_resolver
from cleanova.services.progress_sync import display_percent

router = APIRouter()


def _summary(video: Video, render: AssetRender, slug: Optional[str],
             progress: Optional[UserVideoProgress]) -> VideoSummary:
    resolved = render.resolve(video)
    summary = VideoSummary(
        id=video.id,
        title=video.title,
        description=video.description,
        video_url=resolved.video_url,
        thumbnail_url=resolved.thumbnail_url,
        category_slug=slug,
    )
    if progress is not None:
        summary.progress = ProgressBase(
            progress_seconds=progress.progress_seconds,
            is_completed=progress.is_completed,
        )
        summary.percent = display_percent(progress.progress_seconds, progress.is_completed)
    return summary


def _summaries(db: Session, user: User, videos: List[Video],
               resolver: SignedAssetResolver, slugs: Dict[int, str]) -> List[VideoSummary]:
    progress_map = crud_progress.get_progress_map(db, user.id, [v.id for v in videos])
    render = resolver.render()
    return [
        _summary(video, render, slugs.get(video.category_id), progress_map.get(video.id))
        for video in videos
    ]


@router.get("/categories", response_model=List[CategoryOut], summary="Listar categorías")
def list_categories(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_subscriber),
):
    return [
        CategoryOut(id=c.id, name=c.name, slug=crud_catalog.slugify(c.name))
        for c in crud_catalog.get_categories(db)
    ]


@router.get("/videos/latest", response_model=List[VideoSummary], summary="Últimos videos (dashboard)")
def latest_videos(
    limit: int = Query(6, ge=1, le=50),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_subscriber),
    resolver: SignedAssetResolver = Depends(get_asset_resolver),
):
    videos = crud_catalog.get_latest_videos(db, limit=limit)
    return _summaries(db, user, videos, resolver, crud_catalog.get_category_slug_map(db))


@router.get("/categories/{category_slug}/videos", response_model=CategoryVideos,
            summary="Videos de una categoría")
def category_videos(
    category_slug: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_subscriber),
    resolver: SignedAssetResolver = Depends(get_asset_resolver),
):
    category = crud_catalog.get_category_by_slug(db, category_slug)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Categoría no encontrada")

    slug = crud_catalog.slugify(category.name)
    videos = crud_catalog.get_videos_by_category(db, category.id)
    return CategoryVideos(
        category=CategoryOut(id=category.id, name=category.name, slug=slug),
        videos=_summaries(db, user, videos, resolver, {category.id: slug}),
    )


@router.get("/categories/{category_slug}/videos/{video_id}", response_model=VideoDetail,
            summary="Detalle de un video")
def video_detail(
    category_slug: str,
    video_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_subscriber),
    resolver: SignedAssetResolver = Depends(get_asset_resolver),
):
    """
    Detalle del video con URLs firmadas, progreso del usuario y hasta tres
    recomendaciones de la misma categoría.
    """
    video = crud_catalog.get_video(db, video_id)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video no encontrado")

    render = resolver.render()
    progress = crud_progress.get_progress(db, user.id, video.id)
    summary = _summary(video, render, category_slug, progress)

    recommendations = [
        RecommendationOut(
            id=rec.id,
            title=rec.title,
            description=rec.description,
            thumbnail_url=resolver.resolve_thumbnail_url(rec.thumbnail_url),
        )
        for rec in crud_catalog.get_recommendations(db, video)
    ]
    return VideoDetail(**summary.model_dump(), recommendations=recommendations)
