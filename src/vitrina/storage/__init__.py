"""
Módulo de almacenamiento de imágenes.
"""

from vitrina.storage.image_store import ImageStore, SupabaseImageStore

__all__ = [
    "ImageStore",
    "SupabaseImageStore",
]
