"""
Repositorios para operaciones CRUD en Supabase.

Cada repositorio maneja una tabla/entidad específica. Son síncronos:
los servicios los llaman vía asyncio.to_thread con un deadline.
"""

from typing import Optional

import structlog

from vitrina.database.supabase_client import SupabaseClient
from vitrina.models import Conversation, Listing, Message, User

logger = structlog.get_logger()

LISTING_DETAIL_SELECT = "*, seller:users(name, location), category:categories(name)"


class BaseRepository:
    """Clase base para repositorios."""

    def __init__(self, client: SupabaseClient):
        self._client = client

    @property
    def client(self) -> SupabaseClient:
        return self._client


class ListingRepository(BaseRepository):
    """Repositorio para publicaciones (listings)."""

    TABLE = "listings"

    def create(self, listing: Listing) -> dict:
        """
        Inserta una nueva publicación.

        Returns:
            El registro insertado con su ID
        """
        data = listing.to_db_dict()
        response = self.client.table(self.TABLE).insert(data).execute()
        logger.info(
            "Listing creado",
            seller_id=listing.seller_id,
            images=len(listing.images),
            ai_generated=listing.ai_generated,
        )
        return response.data[0] if response.data else {}

    def get_by_id(self, listing_id: str) -> Optional[dict]:
        """Obtiene una publicación por su UUID."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("id", listing_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def get_detail(self, listing_id: str) -> Optional[dict]:
        """Obtiene una publicación con vendedor y categoría."""
        response = (
            self.client.table(self.TABLE)
            .select(LISTING_DETAIL_SELECT)
            .eq("id", listing_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def set_views(self, listing_id: str, views: int) -> bool:
        """Escribe el contador de vistas (read-then-write, no atómico)."""
        response = (
            self.client.table(self.TABLE)
            .update({"views": views})
            .eq("id", listing_id)
            .execute()
        )
        return len(response.data) > 0

    def search(
        self,
        text: Optional[str] = None,
        category_id: Optional[str] = None,
        location: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> list[dict]:
        """
        Búsqueda de publicaciones activas, más nuevas primero.

        Returns:
            Lista de publicaciones que cumplen los filtros
        """
        query = (
            self.client.table(self.TABLE)
            .select(LISTING_DETAIL_SELECT)
            .eq("status", "active")
        )

        if text:
            query = query.or_(f"title.ilike.%{text}%,description.ilike.%{text}%")
        if category_id:
            query = query.eq("category_id", category_id)
        if location:
            query = query.ilike("location", f"%{location}%")
        if min_price is not None:
            query = query.gte("price", min_price)
        if max_price is not None:
            query = query.lte("price", max_price)

        response = query.order("created_at", desc=True).execute()
        return response.data or []


class CategoryRepository(BaseRepository):
    """Repositorio de categorías (solo lectura)."""

    TABLE = "categories"

    def find_id_by_name(self, name: str) -> Optional[str]:
        """Busca el ID de una categoría por nombre, sin distinguir mayúsculas."""
        response = (
            self.client.table(self.TABLE)
            .select("id")
            .ilike("name", name)
            .limit(1)
            .execute()
        )
        return response.data[0]["id"] if response.data else None


class ConversationRepository(BaseRepository):
    """Repositorio para conversaciones."""

    TABLE = "conversations"

    def create(self, conversation: Conversation) -> dict:
        """Crea una conversación nueva."""
        data = conversation.to_db_dict()
        response = self.client.table(self.TABLE).insert(data).execute()
        logger.info(
            "Conversación creada",
            listing_id=conversation.listing_id,
            buyer_id=conversation.buyer_id,
        )
        return response.data[0] if response.data else {}

    def get_with_listing(self, conversation_id: str) -> Optional[dict]:
        """Obtiene una conversación junto con su publicación."""
        response = (
            self.client.table(self.TABLE)
            .select("*, listing:listings(*)")
            .eq("id", conversation_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None


class MessageRepository(BaseRepository):
    """Repositorio de mensajes (append-only)."""

    TABLE = "messages"

    def create_many(self, messages: list[Message]) -> list[dict]:
        """Inserta varios mensajes en una sola operación, respetando el orden."""
        data = [message.to_db_dict() for message in messages]
        response = self.client.table(self.TABLE).insert(data).execute()
        return response.data or []


class UserRepository(BaseRepository):
    """Repositorio para usuarios."""

    TABLE = "users"

    def create(self, user: User) -> dict:
        """Crea un nuevo usuario."""
        data = user.to_db_dict()
        response = self.client.table(self.TABLE).insert(data).execute()
        logger.info("Usuario creado", email=user.email)
        return response.data[0] if response.data else {}

    def get_by_email(self, email: str) -> Optional[dict]:
        """Obtiene un usuario por su email."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("email", email)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None
