"""
Normalización de fotos.

Antes de mandar nada al LLM o a Storage, cada foto se acota a
max_dimension x max_dimension (sin agrandar, manteniendo proporción)
y se re-encodea como JPEG con calidad fija.
"""

import io

import structlog
from PIL import Image, ImageOps

from vitrina.errors import NormalizationError
from vitrina.models import NormalizedImage

logger = structlog.get_logger()


class ImageNormalizer:
    """Redimensiona y re-encodea fotos de forma determinística."""

    output_content_type = "image/jpeg"

    def __init__(self, max_dimension: int = 1024, quality: int = 80):
        self.max_dimension = max_dimension
        self.quality = quality

    def normalize(self, data: bytes, content_type: str = "") -> NormalizedImage:
        """
        Normaliza una foto.

        Args:
            data: Bytes originales
            content_type: MIME declarado por el cliente (solo informativo,
                el formato real lo detecta Pillow)

        Returns:
            NormalizedImage en JPEG

        Raises:
            NormalizationError: si la foto no se puede decodificar o encodear
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                img = ImageOps.exif_transpose(img)
                if img.mode != "RGB":
                    img = img.convert("RGB")
                # thumbnail nunca agranda y preserva la proporción
                img.thumbnail((self.max_dimension, self.max_dimension), Image.Resampling.LANCZOS)

                buf = io.BytesIO()
                img.save(buf, format="JPEG", quality=self.quality)
                width, height = img.size
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
            logger.warning(
                "No se pudo normalizar la imagen",
                content_type=content_type,
                size=len(data),
                error=str(e),
            )
            raise NormalizationError(
                f"No se pudo procesar la imagen: {e}",
                {"contentType": content_type},
            ) from e

        return NormalizedImage(
            data=buf.getvalue(),
            width=width,
            height=height,
            content_type=self.output_content_type,
        )
