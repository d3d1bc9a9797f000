"""
Módulo de análisis con IA.

Provee generación de publicaciones y respuestas de chat usando LLM
(OpenAI/Groq/Gemini).
"""

from vitrina.analysis.listing_advisor import ListingAdvisor, AdvisorResult
from vitrina.analysis.llm_providers import (
    get_llm_provider,
    BaseLLMProvider,
    LLMResponse,
    OpenAIProvider,
    GroqProvider,
    GeminiProvider,
)

__all__ = [
    # Advisor
    "ListingAdvisor",
    "AdvisorResult",
    # Proveedores LLM
    "get_llm_provider",
    "BaseLLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "GroqProvider",
    "GeminiProvider",
]
