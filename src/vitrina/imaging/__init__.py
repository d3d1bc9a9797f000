"""
Procesamiento de imágenes.
"""

from vitrina.imaging.normalizer import ImageNormalizer

__all__ = ["ImageNormalizer"]
