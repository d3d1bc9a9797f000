"""
Modelos de conversaciones comprador-vendedor mediadas por IA.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Conversation(BaseModel):
    """
    Hilo de mensajes sobre una publicación.

    No hay unicidad por (listing, buyer): cada start crea una fila nueva.
    """

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(None, description="UUID generado por Supabase")
    listing_id: str = Field(..., description="FK a listings")
    buyer_id: str = Field(..., description="FK al comprador")
    seller_id: str = Field(..., description="FK al vendedor")
    status: str = Field(default="active", description="Estado de la conversación")

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(exclude={"id"})


class Message(BaseModel):
    """
    Mensaje de una conversación (append-only, ordenado por created_at).

    Los mensajes de IA no tienen sender; los humanos siempre lo tienen.
    """

    id: Optional[str] = Field(None, description="UUID generado por Supabase")
    conversation_id: str = Field(..., description="FK a conversations")
    sender_id: Optional[str] = Field(None, description="FK al usuario, null si es IA")
    content: str = Field(..., description="Texto del mensaje")
    is_ai_generated: bool = Field(default=False, description="Escrito por la IA")
    created_at: str = Field(
        default_factory=lambda: datetime.utcnow().isoformat(),
        description="Timestamp de creación",
    )

    @model_validator(mode="after")
    def _sender_matches_origin(self) -> "Message":
        if self.is_ai_generated and self.sender_id is not None:
            raise ValueError("un mensaje de IA no puede tener sender")
        if not self.is_ai_generated and not self.sender_id:
            raise ValueError("un mensaje humano necesita sender")
        return self

    @classmethod
    def from_human(cls, conversation_id: str, sender_id: str, content: str) -> "Message":
        return cls(
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            is_ai_generated=False,
        )

    @classmethod
    def from_ai(cls, conversation_id: str, content: str) -> "Message":
        return cls(
            conversation_id=conversation_id,
            sender_id=None,
            content=content,
            is_ai_generated=True,
        )

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(exclude={"id"})
