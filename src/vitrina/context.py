"""
Contexto de la aplicación.

Los clientes de proceso (Supabase, LLM) se crean una sola vez al
arrancar y se inyectan en cada componente. No hay teardown.
"""

from dataclasses import dataclass, field

import structlog

from vitrina.analysis import ListingAdvisor, get_llm_provider
from vitrina.config import Settings
from vitrina.database import (
    CategoryRepository,
    ConversationRepository,
    ListingRepository,
    MessageRepository,
    UserRepository,
    create_supabase_client,
)
from vitrina.imaging import ImageNormalizer
from vitrina.services import (
    AccountService,
    AnonymousFallbackIdentity,
    CategoryResolver,
    ConversationOrchestrator,
    ListingGenerationPipeline,
    SearchService,
    TokenIssuer,
)
from vitrina.storage import SupabaseImageStore

logger = structlog.get_logger()


@dataclass
class AppContext:
    """Todo lo que necesitan los handlers HTTP."""

    settings: Settings
    identity: AnonymousFallbackIdentity
    pipeline: ListingGenerationPipeline
    conversations: ConversationOrchestrator
    search: SearchService
    accounts: AccountService
    services: dict[str, bool] = field(default_factory=dict)


def build_context(settings: Settings) -> AppContext:
    """
    Arma el grafo de componentes a partir de la configuración.

    Raises:
        ValueError: si faltan credenciales de Supabase o del LLM
    """
    supabase = create_supabase_client(settings)
    advisor = ListingAdvisor(get_llm_provider(settings=settings))

    listings = ListingRepository(supabase)
    tokens = TokenIssuer(settings.jwt_secret, ttl_seconds=settings.jwt_expires_days * 86400)

    context = AppContext(
        settings=settings,
        identity=AnonymousFallbackIdentity(
            enabled=settings.anonymous_fallback_enabled,
            user_id=settings.anonymous_user_id,
            tokens=tokens,
        ),
        pipeline=ListingGenerationPipeline(
            settings=settings,
            normalizer=ImageNormalizer(
                max_dimension=settings.image_max_dimension,
                quality=settings.image_jpeg_quality,
            ),
            advisor=advisor,
            store=SupabaseImageStore(supabase, bucket=settings.storage_bucket),
            categories=CategoryResolver(CategoryRepository(supabase)),
            listings=listings,
        ),
        conversations=ConversationOrchestrator(
            settings=settings,
            advisor=advisor,
            listings=listings,
            conversations=ConversationRepository(supabase),
            messages=MessageRepository(supabase),
        ),
        search=SearchService(settings, listings),
        accounts=AccountService(settings, UserRepository(supabase), tokens),
        services={
            "supabase": bool(settings.supabase_url),
            settings.llm_provider.lower(): bool(settings.llm_api_key()),
        },
    )

    if settings.anonymous_fallback_enabled:
        logger.warning(
            "Fallback anónimo activo: requests sin token usan un usuario fijo",
            user_id=settings.anonymous_user_id,
        )
    logger.info("Contexto inicializado", provider=advisor.provider_name)
    return context
