"""
Modelos de datos del sistema.

- Transitorios: UploadedImage, NormalizedImage, ListingDraft
- Persistidos: Listing, Conversation, Message, User
"""

from vitrina.models.image import UploadedImage, NormalizedImage
from vitrina.models.listing import (
    Listing,
    ListingDraft,
    coerce_price,
    normalize_condition,
)
from vitrina.models.conversation import Conversation, Message
from vitrina.models.user import User, public_user

__all__ = [
    # Imágenes
    "UploadedImage",
    "NormalizedImage",
    # Publicaciones
    "Listing",
    "ListingDraft",
    "coerce_price",
    "normalize_condition",
    # Conversaciones
    "Conversation",
    "Message",
    # Usuarios
    "User",
    "public_user",
]
