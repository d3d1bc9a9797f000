"""
Almacenamiento de fotos de publicaciones.

ImageStore es la interfaz que consume el pipeline; SupabaseImageStore
la implementa sobre Supabase Storage.
"""

from abc import ABC, abstractmethod

import structlog

from vitrina.database.supabase_client import SupabaseClient

logger = structlog.get_logger()


class ImageStore(ABC):
    """Storage de objetos con URLs públicas."""

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """
        Sube un objeto y devuelve su URL pública.

        Args:
            path: Ruta del objeto dentro del bucket
            data: Bytes a subir
            content_type: MIME type del objeto

        Returns:
            URL pública del objeto
        """
        pass


class SupabaseImageStore(ImageStore):
    """Fotos en un bucket público de Supabase Storage."""

    def __init__(self, client: SupabaseClient, bucket: str = "listings"):
        self._client = client
        self.bucket = bucket

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        bucket = self._client.bucket(self.bucket)
        try:
            bucket.upload(
                path=path,
                file=data,
                file_options={"content-type": content_type},
            )
        except Exception as e:
            logger.error(
                "Error subiendo a Storage",
                bucket=self.bucket,
                path=path,
                error=str(e),
            )
            raise

        url = bucket.get_public_url(path)
        logger.debug("Upload ok", bucket=self.bucket, path=path, size=len(data))
        return url
