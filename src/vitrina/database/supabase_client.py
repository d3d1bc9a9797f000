"""
Cliente de Supabase.

Se crea una sola vez al arrancar el proceso (ver vitrina.context) y se
comparte entre repositorios (PostgREST) y el store de imágenes (Storage).
"""

from typing import Optional

import structlog
from supabase import Client, create_client

from vitrina.config import Settings

logger = structlog.get_logger()


class SupabaseClient:
    """Acceso a tablas y buckets sobre un único cliente de Supabase."""

    def __init__(self, client: Client, default_bucket: str = "listings"):
        self._client = client
        self.default_bucket = default_bucket

    def table(self, name: str):
        return self._client.table(name)

    def bucket(self, name: Optional[str] = None):
        """Bucket de Storage (por defecto, el de las fotos de publicaciones)."""
        return self._client.storage.from_(name or self.default_bucket)


def _select_key(settings: Settings) -> str:
    # Con la anon key los uploads a Storage chocan con RLS
    if settings.supabase_service_key:
        return settings.supabase_service_key
    logger.warning("SUPABASE_SERVICE_KEY no configurada, usando anon key")
    return settings.supabase_key


def create_supabase_client(settings: Settings) -> SupabaseClient:
    """
    Crea el cliente a partir de la configuración.

    Raises:
        ValueError: si faltan SUPABASE_URL o SUPABASE_KEY
    """
    if not (settings.supabase_url and settings.supabase_key):
        raise ValueError("Faltan SUPABASE_URL / SUPABASE_KEY en el entorno")

    client = create_client(settings.supabase_url, _select_key(settings))
    logger.info(
        "Supabase listo",
        url=settings.supabase_url,
        bucket=settings.storage_bucket,
    )
    return SupabaseClient(client, default_bucket=settings.storage_bucket)
