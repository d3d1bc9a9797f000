"""
Llamadas externas con deadline.

Toda llamada a Storage, Supabase o al LLM pasa por acá: un timeout se
convierte en UpstreamTimeout y cualquier excepción no clasificada en
UpstreamError. No hay reintentos.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import structlog

from vitrina.errors import UpstreamError, UpstreamTimeout, VitrinaError

logger = structlog.get_logger()

T = TypeVar("T")


async def call_with_deadline(
    awaitable: Awaitable[T], seconds: float, operation: str
) -> T:
    """
    Espera `awaitable` como máximo `seconds` segundos.

    Args:
        awaitable: Coroutine a esperar
        seconds: Deadline en segundos
        operation: Nombre corto para logs y mensajes de error

    Raises:
        UpstreamTimeout: si se supera el deadline
        UpstreamError: si la llamada falla con un error no clasificado
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        logger.error("Timeout en llamada externa", operation=operation, seconds=seconds)
        raise UpstreamTimeout(
            f"{operation}: sin respuesta en {seconds:g}s",
            {"operation": operation},
        ) from e
    except VitrinaError:
        raise
    except Exception as e:
        logger.error("Error en llamada externa", operation=operation, error=str(e))
        raise UpstreamError(f"{operation}: {e}", {"operation": operation}) from e


async def run_blocking(
    func: Callable[..., T], *args: Any, seconds: float, operation: str
) -> T:
    """
    Corre una función síncrona (cliente de Supabase) en un thread con deadline.

    Si se vence el deadline, el thread sigue hasta terminar pero su
    resultado se descarta.
    """
    return await call_with_deadline(
        asyncio.to_thread(func, *args), seconds=seconds, operation=operation
    )
