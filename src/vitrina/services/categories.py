"""
Resolución de categorías en texto libre.
"""

from typing import Any, Optional

import structlog

from vitrina.config import CATEGORY_NAMES
from vitrina.database import CategoryRepository

logger = structlog.get_logger()

_CANONICAL = {name.lower(): name for name in CATEGORY_NAMES}


def canonical_category(label: Any) -> Optional[str]:
    """Nombre canónico de la categoría, o None si no es una de las conocidas."""
    if not isinstance(label, str):
        return None
    return _CANONICAL.get(label.strip().lower())


class CategoryResolver:
    """
    Mapea la categoría que devuelve el LLM a un category_id.

    Match exacto sin distinguir mayúsculas; sin fuzzy matching.
    Si no hay match devuelve None (la publicación queda sin categoría).
    """

    def __init__(self, repository: CategoryRepository):
        self._repository = repository

    def resolve(self, label: Any) -> Optional[str]:
        name = canonical_category(label)
        if name is None:
            logger.info("Categoría sin match", label=label)
            return None

        category_id = self._repository.find_id_by_name(name)
        if category_id is None:
            logger.warning("Categoría conocida sin fila en la tabla", name=name)
        return category_id
