"""
Consultas de publicaciones: búsqueda con filtros y detalle.
"""

import re
from typing import Optional

import structlog

from vitrina.config import Settings
from vitrina.database import ListingRepository
from vitrina.errors import InvalidInput, NotFound
from vitrina.services.deadline import run_blocking

logger = structlog.get_logger()

# Caracteres que rompen la sintaxis del filtro or=(...) de PostgREST
_FILTER_UNSAFE = re.compile(r"[,()%*\\]")


def sanitize_search_text(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    cleaned = " ".join(_FILTER_UNSAFE.sub(" ", text).split())
    return cleaned or None


def parse_price(value: Optional[str], name: str) -> Optional[float]:
    """Parsea un filtro de precio; vacío -> None."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(str(value).strip())
    except ValueError:
        raise InvalidInput(f"{name} debe ser numérico", {name: value})


class SearchService:
    """Superficie de lectura sobre las publicaciones."""

    def __init__(self, settings: Settings, listings: ListingRepository):
        self._settings = settings
        self._listings = listings

    async def search(
        self,
        q: Optional[str] = None,
        category: Optional[str] = None,
        location: Optional[str] = None,
        min_price: Optional[str] = None,
        max_price: Optional[str] = None,
    ) -> list[dict]:
        """
        Publicaciones activas que cumplen los filtros, más nuevas primero.

        Los precios llegan como strings del query string.
        """
        minimum = parse_price(min_price, "minPrice")
        maximum = parse_price(max_price, "maxPrice")

        results = await run_blocking(
            self._listings.search,
            sanitize_search_text(q),
            category or None,
            (location or "").strip() or None,
            minimum,
            maximum,
            seconds=self._settings.database_timeout_seconds,
            operation="listings.search",
        )
        logger.info("Búsqueda", q=q, category=category, results=len(results))
        return results

    async def get_listing(self, listing_id: str) -> dict:
        """
        Detalle de una publicación; suma una vista.

        El incremento es leer-y-escribir (no atómico): dos lecturas
        simultáneas pueden contar una sola vista, pero nunca restan.
        """
        listing = await run_blocking(
            self._listings.get_detail,
            listing_id,
            seconds=self._settings.database_timeout_seconds,
            operation="listings.get",
        )
        if not listing:
            raise NotFound("Publicación no encontrada", {"listingId": listing_id})

        views = (listing.get("views") or 0) + 1
        await run_blocking(
            self._listings.set_views,
            listing_id,
            views,
            seconds=self._settings.database_timeout_seconds,
            operation="listings.views",
        )
        return listing
