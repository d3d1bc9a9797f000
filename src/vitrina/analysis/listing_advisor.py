"""
Advisor de publicaciones con LLM.

Dos usos:
- Generar el borrador de una publicación a partir de fotos (visión + JSON).
- Responder como asistente de ventas en las conversaciones.

Soporta múltiples proveedores: OpenAI, Groq (Llama), Gemini.
"""

import json
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from vitrina.analysis.llm_providers import BaseLLMProvider
from vitrina.config import CATEGORY_NAMES, LISTING_CONDITIONS
from vitrina.errors import AdvisorContractViolation, UpstreamError
from vitrina.models import ListingDraft, NormalizedImage

logger = structlog.get_logger()

# System prompt para generar publicaciones
LISTING_SYSTEM_PROMPT = (
    "Create marketplace listing JSON with: "
    "title (max 60 chars), "
    "description (2-3 sentences), "
    f"category ({'/'.join(CATEGORY_NAMES)}), "
    "suggestedPrice (number), "
    f"condition ({'/'.join(LISTING_CONDITIONS)}), "
    "keyFeatures (array), "
    "brand (string or null). "
    "Respond ONLY with the JSON object."
)

LISTING_MAX_TOKENS = 800
CHAT_MAX_TOKENS = 300


@dataclass
class AdvisorResult:
    """Borrador validado más el JSON crudo (para mostrar al cliente)."""

    draft: ListingDraft
    payload: dict


class ListingAdvisor:
    """
    Cliente de alto nivel sobre un BaseLLMProvider.

    Cada llamada es independiente: no guarda historial entre turnos.
    """

    def __init__(self, provider: BaseLLMProvider):
        self._provider = provider
        logger.info(
            "ListingAdvisor inicializado",
            provider=provider.provider_name,
            model=getattr(provider, "model", "unknown"),
        )

    @property
    def provider_name(self) -> str:
        return self._provider.provider_name

    def _build_listing_prompt(
        self, condition: Optional[str], location: Optional[str]
    ) -> str:
        """Construye el prompt de usuario que acompaña a las fotos."""
        return (
            f"Create listing. Condition: {condition or 'not specified'}. "
            f"Location: {location or 'not specified'}."
        )

    def _clean_response(self, raw_text: str) -> str:
        """Limpia la respuesta del LLM para extraer JSON."""
        text = raw_text.strip()

        # Remover markdown code blocks
        if text.startswith("```"):
            parts = text.split("```")
            if len(parts) >= 2:
                text = parts[1]
                if text.startswith("json"):
                    text = text[4:]

        return text.strip()

    def parse_listing_payload(self, raw_text: str) -> dict:
        """
        Parsea el JSON del LLM.

        Raises:
            AdvisorContractViolation: si no es JSON o no es un objeto
        """
        text = self._clean_response(raw_text)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(
                "Error parseando respuesta de LLM",
                error=str(e),
                response=text[:300],
            )
            raise AdvisorContractViolation(
                "La respuesta del LLM no es JSON válido"
            ) from e

        if not isinstance(data, dict):
            raise AdvisorContractViolation(
                "La respuesta del LLM no es un objeto JSON",
                {"payloadType": type(data).__name__},
            )
        return data

    async def draft_listing(
        self,
        images: Sequence[NormalizedImage],
        condition: Optional[str] = None,
        location: Optional[str] = None,
    ) -> AdvisorResult:
        """
        Genera el borrador de una publicación con todas las fotos en un solo request.

        Args:
            images: Fotos ya normalizadas
            condition: Estado declarado por el vendedor (contexto para el LLM)
            location: Ubicación declarada por el vendedor

        Returns:
            AdvisorResult con el borrador validado
        """
        response = await self._provider.generate(
            system_prompt=LISTING_SYSTEM_PROMPT,
            user_prompt=self._build_listing_prompt(condition, location),
            temperature=0.2,
            max_tokens=LISTING_MAX_TOKENS,
            images=images,
            json_output=True,
        )

        payload = self.parse_listing_payload(response.text)
        draft = ListingDraft.from_advisor_payload(payload)

        logger.info(
            "Borrador generado",
            provider=response.provider,
            model=response.model,
            images=len(images),
            category=draft.category,
            condition=draft.condition,
            tokens=response.tokens_used,
        )
        return AdvisorResult(draft=draft, payload=payload)

    async def reply(self, system_prompt: str, message: str) -> str:
        """
        Un turno de chat: instrucciones + mensaje del usuario.

        Raises:
            UpstreamError: si el LLM devuelve una respuesta vacía
        """
        response = await self._provider.generate(
            system_prompt=system_prompt,
            user_prompt=message,
            temperature=0.7,
            max_tokens=CHAT_MAX_TOKENS,
        )
        text = (response.text or "").strip()
        if not text:
            raise UpstreamError("El LLM devolvió una respuesta vacía")
        return text
