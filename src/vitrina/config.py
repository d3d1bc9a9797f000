"""
Configuración de vitrina.

Todo sale de variables de entorno (o del .env en la raíz del repo).
Las constantes de dominio van al final del módulo.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env en la raíz del repo
# config.py -> vitrina/ -> src/ -> vitrina (project root)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Settings del proceso; ver .env.example."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: str = Field(..., description="URL del proyecto Supabase")
    supabase_key: str = Field(..., description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key (necesaria para subir a Storage con RLS)"
    )
    storage_bucket: str = Field(
        "listings", description="Bucket de Storage donde se guardan las fotos"
    )

    # LLM Provider
    llm_provider: str = Field(
        "openai",
        description="Proveedor de LLM a usar: 'openai', 'groq' o 'gemini'"
    )

    # OpenAI
    openai_api_key: Optional[str] = Field(None, description="API key de OpenAI")
    openai_model: str = Field("gpt-4o-mini", description="Modelo de OpenAI con visión")

    # Groq
    groq_api_key: Optional[str] = Field(None, description="API key de Groq")
    groq_model: str = Field(
        "meta-llama/llama-4-scout-17b-16e-instruct",
        description="Modelo de Groq a usar (tiene que aceptar imágenes)"
    )

    # Gemini
    gemini_api_key: Optional[str] = Field(None, description="API key de Google Gemini")
    gemini_model: str = Field("gemini-2.0-flash", description="Modelo de Gemini a usar")

    # Auth
    jwt_secret: str = Field("test-secret", description="Secreto para firmar tokens HS256")
    jwt_expires_days: int = Field(7, ge=1, description="Vigencia de los tokens en días")
    anonymous_fallback_enabled: bool = Field(
        True,
        description="Si está activo, requests sin token (o con token inválido) usan el usuario anónimo",
    )
    anonymous_user_id: str = Field(
        "00000000-0000-0000-0000-000000000001",
        description="UUID del usuario anónimo",
    )

    # Imágenes
    max_images_per_listing: int = Field(5, ge=1, description="Máximo de fotos por publicación")
    max_image_bytes: int = Field(
        10 * 1024 * 1024, ge=1, description="Tamaño máximo por foto (bytes)"
    )
    image_max_dimension: int = Field(
        1024, ge=1, description="Lado máximo de la foto normalizada (px)"
    )
    image_jpeg_quality: int = Field(80, ge=1, le=95, description="Calidad JPEG de salida")

    # Deadlines de llamadas externas
    advisor_timeout_seconds: float = Field(30.0, gt=0, description="Timeout de llamadas al LLM")
    storage_timeout_seconds: float = Field(30.0, gt=0, description="Timeout de uploads a Storage")
    database_timeout_seconds: float = Field(15.0, gt=0, description="Timeout de queries a Supabase")

    # Servidor HTTP
    host: str = Field("0.0.0.0", description="Host de escucha")
    port: int = Field(3001, description="Puerto HTTP")

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")

    def llm_api_key(self) -> Optional[str]:
        """API key del proveedor configurado en llm_provider."""
        return getattr(self, f"{self.llm_provider.lower()}_api_key", None)


@lru_cache
def get_settings() -> Settings:
    """Settings cacheados (una lectura del entorno por proceso)."""
    return Settings()


# Constantes del sistema
CATEGORY_NAMES = [
    "Electronics",
    "Appliances",
    "Furniture",
    "Vehicles",
    "Clothing",
    "Home & Garden",
    "Sports & Outdoors",
    "Toys & Games",
    "Books & Media",
    "Collectibles",
]

LISTING_CONDITIONS = ["new", "like_new", "good", "fair", "poor"]

DEFAULT_CONDITION = "good"

DEFAULT_LOCATION = "Unknown"

# Rango de negociación relativo al precio publicado
NEGOTIATION_FLOOR = 0.8
NEGOTIATION_CEILING = 1.1
