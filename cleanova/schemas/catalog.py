from typing import List, Optional

from pydantic import BaseModel

from cleanova.schemas.video_progress import ProgressBase


class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str


class VideoSummary(BaseModel):
    """
    Video listo para mostrar: URLs ya firmadas y progreso del usuario.
    """
    id: str
    title: str
    description: Optional[str] = None
    video_url: str
    thumbnail_url: Optional[str] = None
    category_slug: Optional[str] = None
    progress: Optional[ProgressBase] = None
    percent: Optional[int] = None


class RecommendationOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None


class VideoDetail(VideoSummary):
    recommendations: List[RecommendationOut] = []


class CategoryVideos(BaseModel):
    category: CategoryOut
    videos: List[VideoSummary]
