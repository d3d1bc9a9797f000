"""
API HTTP (aiohttp).
"""

from vitrina.api.app import create_app
from vitrina.api.routes import CONTEXT

__all__ = ["create_app", "CONTEXT"]
