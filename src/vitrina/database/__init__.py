"""
Módulo de base de datos.

Provee acceso a Supabase y operaciones CRUD.
"""

from vitrina.database.supabase_client import create_supabase_client, SupabaseClient
from vitrina.database.repositories import (
    ListingRepository,
    CategoryRepository,
    ConversationRepository,
    MessageRepository,
    UserRepository,
)

__all__ = [
    "create_supabase_client",
    "SupabaseClient",
    "ListingRepository",
    "CategoryRepository",
    "ConversationRepository",
    "MessageRepository",
    "UserRepository",
]
