"""
Modelos de publicaciones.

- ListingDraft: lo que devuelve el LLM, validado y acotado.
- Listing: la fila persistida en la tabla 'listings'.
"""

import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from vitrina.config import DEFAULT_CONDITION, DEFAULT_LOCATION, LISTING_CONDITIONS
from vitrina.errors import AdvisorContractViolation

TITLE_MAX_LENGTH = 60

# Sinónimos frecuentes que devuelven los modelos
_CONDITION_ALIASES = {
    "brand_new": "new",
    "likenew": "like_new",
    "used_like_new": "like_new",
    "excellent": "like_new",
    "used": "good",
    "used_good": "good",
    "used_fair": "fair",
    "for_parts": "poor",
}


def normalize_condition(value: Any) -> str:
    """
    Mapea cualquier texto al enum de condiciones.

    'Like New', 'like-new' y 'LIKE_NEW' terminan en 'like_new'.
    Lo que no se reconoce cae en DEFAULT_CONDITION.
    """
    if not isinstance(value, str):
        return DEFAULT_CONDITION
    key = "_".join(value.strip().lower().replace("-", " ").split())
    key = _CONDITION_ALIASES.get(key, key)
    return key if key in LISTING_CONDITIONS else DEFAULT_CONDITION


def coerce_price(value: Any) -> float:
    """
    Convierte el precio sugerido a float no negativo.

    Faltante o null -> 0.0. Negativo, no numérico o infinito -> ValueError.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ValueError("precio booleano")
    if isinstance(value, str):
        cleaned = value.strip().replace("$", "").replace(",", "")
        if not cleaned:
            return 0.0
        value = cleaned
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"precio no numérico: {value!r}")
    if not math.isfinite(price):
        raise ValueError("precio no finito")
    if price < 0:
        raise ValueError(f"precio negativo: {price}")
    return round(price, 2)


class ListingDraft(BaseModel):
    """
    Atributos de la publicación sugeridos por el LLM.

    Transitorio: nunca se guarda tal cual, se mapea a un Listing.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., description="Título, máximo 60 caracteres")
    description: str = Field(default="", description="Descripción de 2-3 frases")
    category: Optional[str] = Field(None, description="Categoría en texto libre")
    suggested_price: float = Field(
        default=0.0, alias="suggestedPrice", description="Precio estimado (no autoritativo)"
    )
    condition: str = Field(default=DEFAULT_CONDITION, description="Estado del artículo")
    key_features: list[str] = Field(
        default_factory=list, alias="keyFeatures", description="Características clave"
    )
    brand: Optional[str] = Field(None, description="Marca, si se reconoce")

    @field_validator("title")
    @classmethod
    def _title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("título vacío")
        return value[:TITLE_MAX_LENGTH].rstrip()

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("category", "brand", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("suggested_price", mode="before")
    @classmethod
    def _price(cls, value: Any) -> float:
        return coerce_price(value)

    @field_validator("condition", mode="before")
    @classmethod
    def _condition(cls, value: Any) -> str:
        return normalize_condition(value)

    @field_validator("key_features", mode="before")
    @classmethod
    def _features(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]
        return value

    @classmethod
    def from_advisor_payload(cls, payload: Any) -> "ListingDraft":
        """
        Valida el JSON del LLM.

        Raises:
            AdvisorContractViolation: si no es un objeto o no respeta los tipos
        """
        if not isinstance(payload, dict):
            raise AdvisorContractViolation(
                "La respuesta del LLM no es un objeto JSON",
                {"payloadType": type(payload).__name__},
            )
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
            raise AdvisorContractViolation(
                "La respuesta del LLM no respeta el formato esperado",
                {"fields": fields},
            ) from e

    def metadata(self) -> dict:
        """Metadata libre que se guarda en 'ai_metadata'."""
        return {"keyFeatures": self.key_features, "brand": self.brand}


class Listing(BaseModel):
    """
    Publicación persistida.

    Se mapea directamente a la tabla 'listings' en Supabase.
    """

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(None, description="UUID generado por Supabase")
    seller_id: str = Field(..., description="FK al usuario vendedor")
    title: str = Field(..., description="Título de la publicación")
    description: str = Field(default="", description="Descripción")
    price: float = Field(..., ge=0, description="Precio publicado")
    condition: str = Field(default=DEFAULT_CONDITION, description="Estado del artículo")
    category_id: Optional[str] = Field(None, description="FK a categories (nullable)")
    location: str = Field(default=DEFAULT_LOCATION, description="Ubicación en texto")
    images: list[str] = Field(default_factory=list, description="URLs públicas, en orden")
    ai_generated: bool = Field(default=False, description="Creada por el pipeline de IA")
    ai_metadata: dict = Field(default_factory=dict, description="keyFeatures / brand")
    views: int = Field(default=0, ge=0, description="Contador de vistas")
    status: str = Field(default="active", description="active, inactive, sold...")
    created_at: str = Field(
        default_factory=lambda: datetime.utcnow().isoformat(),
        description="Timestamp de creación",
    )

    @classmethod
    def from_draft(
        cls,
        draft: ListingDraft,
        seller_id: str,
        category_id: Optional[str],
        location: Optional[str],
        image_urls: list[str],
    ) -> "Listing":
        """Arma la publicación a partir del borrador del LLM."""
        return cls(
            seller_id=seller_id,
            title=draft.title,
            description=draft.description,
            price=draft.suggested_price,
            condition=draft.condition,
            category_id=category_id,
            location=(location or "").strip() or DEFAULT_LOCATION,
            images=list(image_urls),
            ai_generated=True,
            ai_metadata=draft.metadata(),
        )

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(exclude={"id"})
