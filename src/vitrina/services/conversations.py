"""
Conversaciones comprador-vendedor con asistente de ventas IA.

La IA responde solo a los mensajes del comprador y nunca habla por el
vendedor. Cada turno es una llamada independiente al LLM: no se le pasa
el historial, solo el contexto de la publicación.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from vitrina.analysis import ListingAdvisor
from vitrina.config import NEGOTIATION_CEILING, NEGOTIATION_FLOOR, Settings
from vitrina.database import ConversationRepository, ListingRepository, MessageRepository
from vitrina.errors import InvalidInput, NotFound, UpstreamError
from vitrina.models import Conversation, Message
from vitrina.services.deadline import call_with_deadline, run_blocking

logger = structlog.get_logger()

SALES_ASSISTANT_PROMPT = (
    'You are the AI sales assistant for "{title}" (${price}). '
    "Be helpful with questions, negotiation (range: ${floor}-${ceiling}), and scheduling. "
    "Keep responses friendly and concise."
)

CONTINUATION_PROMPT = (
    'Continue assisting with "{title}". '
    "Help with questions, negotiation, or scheduling."
)


class SenderRole(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"


@dataclass
class ConversationStart:
    conversation: dict
    reply: str


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def negotiation_bounds(price: float) -> tuple[int, int]:
    """Piso y techo de negociación: 80% y 110% del precio publicado."""
    return _round_half_up(price * NEGOTIATION_FLOOR), _round_half_up(price * NEGOTIATION_CEILING)


def _format_price(price: float) -> str:
    return f"{price:.2f}".rstrip("0").rstrip(".")


class ConversationOrchestrator:
    """Secuencia los mensajes de cada conversación y los turnos de la IA."""

    def __init__(
        self,
        settings: Settings,
        advisor: ListingAdvisor,
        listings: ListingRepository,
        conversations: ConversationRepository,
        messages: MessageRepository,
    ):
        self._settings = settings
        self._advisor = advisor
        self._listings = listings
        self._conversations = conversations
        self._messages = messages

    async def _db(self, func, *args, operation: str):
        return await run_blocking(
            func, *args, seconds=self._settings.database_timeout_seconds, operation=operation
        )

    async def _ask(self, system_prompt: str, message: str) -> str:
        return await call_with_deadline(
            self._advisor.reply(system_prompt, message),
            seconds=self._settings.advisor_timeout_seconds,
            operation="advisor.reply",
        )

    async def start(
        self, listing_id: str, buyer_id: str, first_message: str
    ) -> ConversationStart:
        """
        Abre una conversación y genera la primera respuesta de la IA.

        Se guardan dos mensajes, en orden: el del comprador y el de la IA.
        No hay unicidad por (listing, buyer): cada llamada crea una conversación.
        """
        if not listing_id:
            raise InvalidInput("Falta listingId")
        if not isinstance(first_message, str) or not first_message.strip():
            raise InvalidInput("El mensaje no puede estar vacío")

        listing = await self._db(self._listings.get_by_id, listing_id, operation="listings.get")
        if not listing:
            raise NotFound("Publicación no encontrada", {"listingId": listing_id})

        conversation = await self._db(
            self._conversations.create,
            Conversation(
                listing_id=listing_id,
                buyer_id=buyer_id,
                seller_id=listing["seller_id"],
                status="active",
            ),
            operation="conversations.insert",
        )
        if not conversation:
            raise UpstreamError("conversations.insert: no se devolvió la fila creada")

        price = float(listing.get("price") or 0)
        floor, ceiling = negotiation_bounds(price)
        system_prompt = SALES_ASSISTANT_PROMPT.format(
            title=listing.get("title", ""),
            price=_format_price(price),
            floor=floor,
            ceiling=ceiling,
        )
        reply = await self._ask(system_prompt, first_message)

        await self._db(
            self._messages.create_many,
            [
                Message.from_human(conversation["id"], buyer_id, first_message),
                Message.from_ai(conversation["id"], reply),
            ],
            operation="messages.insert",
        )

        logger.info(
            "Conversación iniciada",
            conversation_id=conversation["id"],
            listing_id=listing_id,
            floor=floor,
            ceiling=ceiling,
        )
        return ConversationStart(conversation=conversation, reply=reply)

    async def continue_conversation(
        self,
        conversation_id: str,
        sender_id: str,
        message: str,
        sender_role: str,
    ) -> Optional[str]:
        """
        Agrega un mensaje humano y, si lo manda el comprador, la respuesta de la IA.

        Returns:
            La respuesta de la IA, o None si el mensaje es del vendedor
        """
        try:
            role = SenderRole(sender_role)
        except ValueError:
            raise InvalidInput(
                "userType debe ser 'buyer' o 'seller'", {"userType": sender_role}
            )
        if not isinstance(message, str) or not message.strip():
            raise InvalidInput("El mensaje no puede estar vacío")

        # El mensaje humano se guarda siempre y primero
        await self._db(
            self._messages.create_many,
            [Message.from_human(conversation_id, sender_id, message)],
            operation="messages.insert",
        )

        if role is not SenderRole.BUYER:
            logger.info("Mensaje del vendedor registrado", conversation_id=conversation_id)
            return None

        conversation = await self._db(
            self._conversations.get_with_listing,
            conversation_id,
            operation="conversations.get",
        )
        if not conversation or not conversation.get("listing"):
            raise NotFound("Conversación no encontrada", {"conversationId": conversation_id})

        system_prompt = CONTINUATION_PROMPT.format(title=conversation["listing"].get("title", ""))
        reply = await self._ask(system_prompt, message)

        await self._db(
            self._messages.create_many,
            [Message.from_ai(conversation_id, reply)],
            operation="messages.insert",
        )

        logger.info("Respuesta de IA agregada", conversation_id=conversation_id)
        return reply
