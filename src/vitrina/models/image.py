"""
Imágenes en tránsito dentro de una ejecución del pipeline.

Nada de esto se persiste: las fotos normalizadas se suben a Storage
y se descartan.
"""

import base64
from dataclasses import dataclass, field


@dataclass(frozen=True)
class UploadedImage:
    """Foto tal cual la mandó el cliente."""

    data: bytes = field(repr=False)
    content_type: str = "application/octet-stream"
    filename: str = ""

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class NormalizedImage:
    """Foto redimensionada y re-encodeada, lista para el LLM y Storage."""

    data: bytes = field(repr=False)
    width: int
    height: int
    content_type: str = "image/jpeg"

    @property
    def extension(self) -> str:
        return "jpg" if self.content_type == "image/jpeg" else self.content_type.split("/")[-1]

    @property
    def data_url(self) -> str:
        """Representación base64 embebible en el request al LLM."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"
