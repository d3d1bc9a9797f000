"""
Abstracción de proveedores LLM.

El advisor habla con un BaseLLMProvider y no sabe qué API hay detrás.
OpenAI y Groq comparten el formato de chat completions; Gemini usa su
propio SDK. Todos aceptan fotos para modelos con visión.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from vitrina.config import Settings, get_settings
from vitrina.models import NormalizedImage

logger = structlog.get_logger()


@dataclass
class LLMResponse:
    """Respuesta normalizada de cualquier LLM."""
    text: str
    model: str
    provider: str
    tokens_used: Optional[int] = None


class BaseLLMProvider(ABC):
    """Clase base para proveedores de LLM."""

    provider_name: str = "base"
    model: str = "unknown"

    @abstractmethod
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 800,
        images: Optional[Sequence[NormalizedImage]] = None,
        json_output: bool = False,
    ) -> LLMResponse:
        """
        Un request al modelo.

        Args:
            system_prompt: Instrucciones del sistema
            user_prompt: Texto del usuario
            temperature: Temperatura de generación (0.0-1.0)
            max_tokens: Tope de tokens de salida
            images: Fotos que acompañan al texto del usuario
            json_output: Forzar que la salida sea un objeto JSON
        """


class _KeyedProvider(BaseLLMProvider):
    """Resuelve api key y modelo desde Settings según `provider_name`."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.api_key = api_key or getattr(settings, f"{self.provider_name}_api_key")
        self.model = model or getattr(settings, f"{self.provider_name}_model")

        if not self.api_key:
            raise ValueError(f"{self.provider_name.upper()}_API_KEY no configurada")

        self.client = self._build_client(self.api_key)
        logger.info("Proveedor LLM listo", provider=self.provider_name, model=self.model)

    @abstractmethod
    def _build_client(self, api_key: str):
        """Cliente async del SDK del proveedor."""


class ChatCompletionsProvider(_KeyedProvider):
    """Proveedores con API compatible con chat completions de OpenAI."""

    @staticmethod
    def _messages(
        system_prompt: str,
        user_prompt: str,
        images: Optional[Sequence[NormalizedImage]],
    ) -> list[dict]:
        # Sin fotos el contenido va como string plano
        content = user_prompt
        if images:
            content = [{"type": "text", "text": user_prompt}] + [
                {"type": "image_url", "image_url": {"url": image.data_url}}
                for image in images
            ]
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": content},
        ]

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 800,
        images: Optional[Sequence[NormalizedImage]] = None,
        json_output: bool = False,
    ) -> LLMResponse:
        extra = {"response_format": {"type": "json_object"}} if json_output else {}

        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=self._messages(system_prompt, user_prompt, images),
            temperature=temperature,
            max_tokens=max_tokens,
            **extra,
        )

        usage = completion.usage
        return LLMResponse(
            text=(completion.choices[0].message.content or "").strip(),
            model=self.model,
            provider=self.provider_name,
            tokens_used=usage.total_tokens if usage else None,
        )


class OpenAIProvider(ChatCompletionsProvider):
    """OpenAI (gpt-4o-mini por defecto)."""

    provider_name = "openai"

    def _build_client(self, api_key: str):
        from openai import AsyncOpenAI

        return AsyncOpenAI(api_key=api_key)


class GroqProvider(ChatCompletionsProvider):
    """
    Groq (LPU inference).

    El pipeline de publicaciones necesita un modelo con visión, p. ej.
    meta-llama/llama-4-scout-17b-16e-instruct.
    """

    provider_name = "groq"

    def _build_client(self, api_key: str):
        from groq import AsyncGroq

        return AsyncGroq(api_key=api_key)


class GeminiProvider(_KeyedProvider):
    """Google Gemini vía google-genai."""

    provider_name = "gemini"

    def _build_client(self, api_key: str):
        from google import genai

        return genai.Client(api_key=api_key)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 800,
        images: Optional[Sequence[NormalizedImage]] = None,
        json_output: bool = False,
    ) -> LLMResponse:
        from google.genai import types

        parts = [user_prompt] + [
            types.Part.from_bytes(data=image.data, mime_type=image.content_type)
            for image in images or []
        ]
        config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json" if json_output else None,
        )

        result = await self.client.aio.models.generate_content(
            model=self.model, contents=parts, config=config
        )
        usage = getattr(result, "usage_metadata", None)
        return LLMResponse(
            text=(result.text or "").strip(),
            model=self.model,
            provider=self.provider_name,
            tokens_used=getattr(usage, "total_token_count", None),
        )


_PROVIDERS = {
    cls.provider_name: cls for cls in (OpenAIProvider, GroqProvider, GeminiProvider)
}


def get_llm_provider(
    provider: Optional[str] = None,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> BaseLLMProvider:
    """
    Instancia el proveedor pedido (o el de settings.llm_provider).

    Raises:
        ValueError: proveedor desconocido o sin api key
    """
    settings = settings or get_settings()
    name = (provider or settings.llm_provider).lower()

    try:
        provider_cls = _PROVIDERS[name]
    except KeyError:
        raise ValueError(
            f"Proveedor LLM no soportado: {name} (opciones: {', '.join(_PROVIDERS)})"
        ) from None
    return provider_cls(api_key=api_key, model=model, settings=settings)
