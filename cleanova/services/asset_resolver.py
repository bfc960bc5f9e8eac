from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from prometheus_client import Counter

from cleanova.core.config import settings
from cleanova.core.logging_config import get_storage_logger
from cleanova.services.storage_service import StorageError, SupabaseStorageClient

logger = get_storage_logger()

VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi")

signed_url_requests_total = Counter(
    "cleanova_signed_url_requests_total",
    "Signed URL requests by asset class and outcome",
    ["asset", "outcome"]
)


class StorageClient(Protocol):
    def list_objects(self, bucket: str) -> List[Dict[str, Any]]: ...

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str: ...


@dataclass(frozen=True)
class ResolvedAsset:
    video_url: str
    thumbnail_url: Optional[str]


def is_absolute_url(value: Optional[str]) -> bool:
    return bool(value) and value.lower().startswith(("http://", "https://"))


class AssetRender:
    """
    Contexto de un único render: el listado del bucket se pide una sola vez y
    se comparte entre todos los videos resueltos en ese render.
    """

    def __init__(self, resolver: "SignedAssetResolver"):
        self.resolver = resolver
        self._listing: Optional[List[str]] = None

    @property
    def listing(self) -> List[str]:
        if self._listing is None:
            self._listing = self.resolver.list_object_names()
        return self._listing

    def resolve(self, video: Any) -> ResolvedAsset:
        storage_key = getattr(video, "storage_key", None)
        if storage_key:
            video_url = self.resolver.sign_or_keep(storage_key, "video", fallback=video.video_url)
        else:
            video_url = self.resolver.resolve_video_url(video.video_url, listing=self.listing)
        return ResolvedAsset(
            video_url=video_url,
            thumbnail_url=self.resolver.resolve_thumbnail_url(video.thumbnail_url),
        )


class SignedAssetResolver:
    """
    Convierte rutas nominales del bucket en URLs firmadas reproducibles.

    Los videos sin `storage_key` usan la heurística heredada: si el bucket
    contiene algún archivo con extensión de video, se firma el primero de ellos
    aunque no corresponda a la ruta nominal. Con varios videos en el bucket
    esto puede servir el archivo equivocado; por eso las filas nuevas deben
    guardar `storage_key`.
    """

    def __init__(self, storage: StorageClient, bucket: str = None, ttl_seconds: int = None):
        self.storage = storage
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.ttl_seconds = ttl_seconds or settings.SIGNED_URL_TTL_SECONDS

    def render(self) -> AssetRender:
        return AssetRender(self)

    def list_object_names(self) -> List[str]:
        try:
            objects = self.storage.list_objects(self.bucket)
            return [
                obj["name"] for obj in objects
                if isinstance(obj, dict) and isinstance(obj.get("name"), str) and obj["name"]
            ]
        except StorageError as e:
            logger.error(f"Error listando el bucket '{self.bucket}': {e}")
        except Exception as e:
            logger.error(f"Error inesperado listando el bucket '{self.bucket}': {e}", exc_info=True)
        return []

    def sign_or_keep(self, path: str, asset: str, fallback: Optional[str]) -> Optional[str]:
        """
        Firma `path`; si la firma falla se conserva `fallback` sin firmar.
        """
        try:
            signed = self.storage.create_signed_url(self.bucket, path, self.ttl_seconds)
            if not signed or not isinstance(signed, str):
                raise StorageError(f"URL firmada vacía o inválida: {signed!r}")
        except StorageError as e:
            signed_url_requests_total.labels(asset=asset, outcome="failed").inc()
            logger.error(f"Error creando URL firmada para {asset} '{path}': {e}")
            return fallback
        except Exception as e:
            signed_url_requests_total.labels(asset=asset, outcome="failed").inc()
            logger.error(f"Error inesperado firmando {asset} '{path}': {e}", exc_info=True)
            return fallback
        signed_url_requests_total.labels(asset=asset, outcome="signed").inc()
        return signed

    def resolve_video_url(self, nominal_path: str, listing: Optional[List[str]] = None) -> str:
        if listing is None:
            listing = self.list_object_names()

        matches = [name for name in listing if any(ext in name.lower() for ext in VIDEO_EXTENSIONS)]
        target = nominal_path
        if matches:
            target = matches[0]
            if target != nominal_path:
                logger.warning(
                    f"Ruta nominal '{nominal_path}' sustituida por el primer video del bucket '{target}'"
                )

        if not target:
            return nominal_path or ""
        return self.sign_or_keep(target, "video", fallback=nominal_path)

    def resolve_thumbnail_url(self, nominal_path: Optional[str]) -> Optional[str]:
        if not nominal_path:
            return None
        signed = self.sign_or_keep(nominal_path, "thumbnail", fallback=None)
        if signed:
            return signed
        if is_absolute_url(nominal_path):
            logger.info(f"Usando la URL original de la miniatura: {nominal_path}")
        return nominal_path

    def resolve(self, video: Any) -> ResolvedAsset:
        return self.render().resolve(video)


def get_asset_resolver() -> SignedAssetResolver:
    """
    Dependencia de FastAPI: un resolvedor por petición.
    """
    return SignedAssetResolver(SupabaseStorageClient())
