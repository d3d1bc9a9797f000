"""
Pipeline de generación de publicaciones con IA.

Fotos + contexto -> normalizar -> LLM -> Storage -> categoría -> insert.

Cada paso corre una sola vez (sin reintentos). Si falla un upload se
aborta antes de crear la publicación; las fotos ya subidas quedan
huérfanas y se informan en el error para limpieza manual.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import structlog

from vitrina.analysis import ListingAdvisor
from vitrina.config import Settings
from vitrina.database import ListingRepository
from vitrina.errors import (
    InvalidInput,
    PartialUploadFailure,
    UpstreamError,
    UpstreamTimeout,
)
from vitrina.imaging import ImageNormalizer
from vitrina.models import Listing, ListingDraft, NormalizedImage, UploadedImage
from vitrina.services.categories import CategoryResolver
from vitrina.services.deadline import call_with_deadline, run_blocking
from vitrina.storage import ImageStore

logger = structlog.get_logger()


@dataclass
class GenerationContext:
    """Datos que declara el vendedor junto con las fotos."""

    location: Optional[str] = None
    condition: Optional[str] = None


@dataclass
class GenerationResult:
    """Publicación creada más la salida del LLM para mostrar al cliente."""

    listing: dict
    draft: ListingDraft
    payload: dict


class ListingGenerationPipeline:
    """Orquesta la creación de una publicación a partir de fotos."""

    def __init__(
        self,
        settings: Settings,
        normalizer: ImageNormalizer,
        advisor: ListingAdvisor,
        store: ImageStore,
        categories: CategoryResolver,
        listings: ListingRepository,
        clock: Callable[[], float] = time.time,
    ):
        self._settings = settings
        self._normalizer = normalizer
        self._advisor = advisor
        self._store = store
        self._categories = categories
        self._listings = listings
        self._clock = clock

    def validate(self, images: Sequence[UploadedImage]) -> None:
        """
        Valida cantidad y tamaño de las fotos.

        Raises:
            InvalidInput: si no hay fotos, hay demasiadas o alguna excede el límite
        """
        max_images = self._settings.max_images_per_listing
        max_bytes = self._settings.max_image_bytes

        if not images:
            raise InvalidInput("Se requiere al menos una imagen")
        if len(images) > max_images:
            raise InvalidInput(
                f"Máximo {max_images} imágenes por publicación",
                {"received": len(images), "max": max_images},
            )
        for index, image in enumerate(images):
            if image.size == 0:
                raise InvalidInput(f"La imagen {index} está vacía", {"index": index})
            if image.size > max_bytes:
                raise InvalidInput(
                    f"La imagen {index} supera el tamaño máximo",
                    {"index": index, "size": image.size, "maxBytes": max_bytes},
                )

    async def _normalize_all(
        self, images: Sequence[UploadedImage]
    ) -> list[NormalizedImage]:
        # Todo o nada: el LLM necesita el set completo
        return list(
            await asyncio.gather(
                *(
                    asyncio.to_thread(self._normalizer.normalize, image.data, image.content_type)
                    for image in images
                )
            )
        )

    def _object_path(self, seller_id: str, stamp: int, index: int, image: NormalizedImage) -> str:
        return f"listings/{seller_id}/{stamp}_{index}.{image.extension}"

    async def _upload_all(
        self, seller_id: str, images: Sequence[NormalizedImage]
    ) -> list[str]:
        """
        Sube todas las fotos en paralelo y espera a que terminen todas.

        Returns:
            URLs públicas en el mismo orden que las fotos

        Raises:
            PartialUploadFailure: si falló al menos un upload
        """
        stamp = int(self._clock() * 1000)
        results = await asyncio.gather(
            *(
                run_blocking(
                    self._store.upload,
                    self._object_path(seller_id, stamp, index, image),
                    image.data,
                    image.content_type,
                    seconds=self._settings.storage_timeout_seconds,
                    operation="storage.upload",
                )
                for index, image in enumerate(images)
            ),
            return_exceptions=True,
        )

        uploaded = [r for r in results if isinstance(r, str)]
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.error(
                "Uploads incompletos, se aborta la publicación",
                seller_id=seller_id,
                uploaded=len(uploaded),
                failed=len(failures),
                error=str(failures[0]),
            )
            raise PartialUploadFailure(
                f"Falló la subida de {len(failures)} de {len(results)} imágenes: {failures[0]}",
                uploaded_urls=uploaded,
                failures=[getattr(f, "kind", type(f).__name__) for f in failures],
            )
        return uploaded

    async def _resolve_category(self, label: Optional[str]) -> Optional[str]:
        try:
            return await run_blocking(
                self._categories.resolve,
                label,
                seconds=self._settings.database_timeout_seconds,
                operation="categories.lookup",
            )
        except (UpstreamError, UpstreamTimeout) as e:
            # Sin categoría es mejor que perder la publicación
            logger.warning("No se pudo resolver la categoría", label=label, error=e.message)
            return None

    async def generate(
        self,
        images: Sequence[UploadedImage],
        context: GenerationContext,
        seller_id: str,
    ) -> GenerationResult:
        """
        Crea una publicación a partir de fotos.

        Args:
            images: Fotos subidas (1..max_images_per_listing)
            context: Ubicación y estado declarados por el vendedor
            seller_id: Identidad autenticada del vendedor (nunca del body)

        Returns:
            GenerationResult con la fila insertada y el borrador del LLM
        """
        self.validate(images)
        if not seller_id:
            raise InvalidInput("Falta la identidad del vendedor")

        logger.info("Procesando imágenes", seller_id=seller_id, images=len(images))

        normalized = await self._normalize_all(images)
        logger.info(
            "Imágenes normalizadas",
            sizes=[f"{img.width}x{img.height}" for img in normalized],
        )

        advice = await call_with_deadline(
            self._advisor.draft_listing(normalized, context.condition, context.location),
            seconds=self._settings.advisor_timeout_seconds,
            operation="advisor.draft_listing",
        )
        draft = advice.draft

        urls = await self._upload_all(seller_id, normalized)
        logger.info("Imágenes subidas", seller_id=seller_id, count=len(urls))

        category_id = await self._resolve_category(draft.category)

        listing = Listing.from_draft(
            draft,
            seller_id=seller_id,
            category_id=category_id,
            location=context.location,
            image_urls=urls,
        )
        try:
            row = await run_blocking(
                self._listings.create,
                listing,
                seconds=self._settings.database_timeout_seconds,
                operation="listings.insert",
            )
        except (UpstreamError, UpstreamTimeout) as e:
            e.details["orphanedUrls"] = urls
            raise
        if not row:
            raise UpstreamError(
                "listings.insert: no se devolvió la fila creada",
                {"orphanedUrls": urls},
            )

        logger.info(
            "Publicación generada",
            listing_id=row.get("id"),
            seller_id=seller_id,
            category_id=category_id,
            price=listing.price,
        )
        return GenerationResult(listing=row, draft=draft, payload=advice.payload)
