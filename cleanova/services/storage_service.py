import logging
from typing import Any, Dict, List
from urllib.parse import quote

import httpx

from cleanova.core.config import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Fallo al listar o firmar objetos en el storage."""


class SupabaseStorageClient:
    """
    Cliente mínimo para la API REST de Supabase Storage: listado de objetos
    de un bucket y creación de URLs firmadas con expiración.
    """

    def __init__(self, base_url: str = None, service_key: str = None,
                 timeout: float = None, transport: httpx.BaseTransport = None):
        self.base_url = (base_url if base_url is not None else settings.STORAGE_URL).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.STORAGE_SERVICE_KEY
        self.timeout = timeout if timeout is not None else settings.STORAGE_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.service_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
            "Content-Type": "application/json",
        }

    def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        if not self.is_configured:
            raise StorageError("Storage no configurado (STORAGE_URL / STORAGE_SERVICE_KEY)")
        url = f"{self.base_url}/storage/v1{path}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(url, json=payload, headers=self._headers())
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise StorageError(
                f"Storage respondió {e.response.status_code} para {path}: {e.response.text}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise StorageError(f"Error de comunicación con storage en {path}: {e}") from e

    def list_objects(self, bucket: str, prefix: str = "") -> List[Dict[str, Any]]:
        """
        Lista los objetos de un bucket. Cada elemento contiene al menos `name`.
        """
        data = self._post(
            f"/object/list/{quote(bucket)}",
            {
                "prefix": prefix,
                "limit": 1000,
                "offset": 0,
                "sortBy": {"column": "name", "order": "asc"},
            },
        )
        if not isinstance(data, list) or not all(isinstance(obj, dict) for obj in data):
            raise StorageError("Respuesta inesperada al listar objetos")
        logger.debug(f"Listado de '{bucket}': {len(data)} objetos")
        return data

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        """
        Crea una URL firmada absoluta para `path` válida durante `expires_in` segundos.
        """
        data = self._post(
            f"/object/sign/{quote(bucket)}/{quote(path.lstrip('/'))}",
            {"expiresIn": expires_in},
        )
        signed = None
        if isinstance(data, dict):
            signed = data.get("signedURL") or data.get("signedUrl")
        if not signed or not isinstance(signed, str):
            raise StorageError(f"No se recibió URL firmada para '{path}'")
        if signed.startswith("http"):
            return signed
        return f"{self.base_url}/storage/v1{signed}"
