"""
Errores clasificados del sistema.

Cada error lleva un `kind` estable (lo que ve el cliente) y el status HTTP
con el que se responde. Los errores no se reintentan automáticamente.
"""

from typing import Any, Optional


class VitrinaError(Exception):
    """Error base con tipo y detalles serializables."""

    kind: str = "InternalError"
    status: int = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Payload JSON de la respuesta de error."""
        return {"error": self.message, "kind": self.kind, **self.details}


class InvalidInput(VitrinaError):
    """Campos faltantes o inválidos, límites de cantidad/tamaño."""

    kind = "InvalidInput"
    status = 400


class NormalizationError(VitrinaError):
    """No se pudo decodificar o re-encodear una imagen."""

    kind = "NormalizationError"
    status = 500


class AdvisorContractViolation(VitrinaError):
    """La respuesta del LLM no respeta la estructura pedida."""

    kind = "AdvisorContractViolation"
    status = 500


class PartialUploadFailure(VitrinaError):
    """
    Falló al menos un upload a Storage.

    Las fotos que sí se subieron quedan huérfanas (no hay rollback);
    sus URLs viajan en `uploadedUrls` para limpieza manual. `failures` lista
    el kind de cada upload fallido (p. ej. "Timeout").
    """

    kind = "PartialUploadFailure"
    status = 500

    def __init__(
        self,
        message: str,
        uploaded_urls: list[str],
        failures: Optional[list[str]] = None,
    ):
        super().__init__(
            message,
            {"uploadedUrls": list(uploaded_urls), "failures": list(failures or [])},
        )
        self.uploaded_urls = list(uploaded_urls)
        self.failures = list(failures or [])


class NotFound(VitrinaError):
    kind = "NotFound"
    status = 404


class AuthFailure(VitrinaError):
    kind = "AuthFailure"
    status = 401


class UpstreamError(VitrinaError):
    """Falla de Storage, base de datos o LLM sin otra clasificación."""

    kind = "UpstreamError"
    status = 502


class UpstreamTimeout(VitrinaError):
    """Una llamada externa superó su deadline."""

    kind = "Timeout"
    status = 504
