"""
Servicios de dominio: pipeline de publicaciones, conversaciones,
búsqueda, categorías y cuentas.
"""

from vitrina.services.accounts import AccountService, hash_password, verify_password
from vitrina.services.categories import CategoryResolver
from vitrina.services.conversations import (
    ConversationOrchestrator,
    ConversationStart,
    SenderRole,
    negotiation_bounds,
)
from vitrina.services.deadline import call_with_deadline, run_blocking
from vitrina.services.identity import AnonymousFallbackIdentity, TokenIssuer, get_bearer_token
from vitrina.services.pipeline import (
    GenerationContext,
    GenerationResult,
    ListingGenerationPipeline,
)
from vitrina.services.search import SearchService, parse_price, sanitize_search_text

__all__ = [
    "AccountService",
    "hash_password",
    "verify_password",
    "CategoryResolver",
    "ConversationOrchestrator",
    "ConversationStart",
    "SenderRole",
    "negotiation_bounds",
    "call_with_deadline",
    "run_blocking",
    "AnonymousFallbackIdentity",
    "TokenIssuer",
    "get_bearer_token",
    "GenerationContext",
    "GenerationResult",
    "ListingGenerationPipeline",
    "SearchService",
    "parse_price",
    "sanitize_search_text",
]
