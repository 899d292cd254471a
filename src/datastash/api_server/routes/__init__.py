# src/datastash/api_server/routes/__init__.py
"""
API routes package initialization.
"""

from .data import router as data_router

__all__ = [
    "data_router",
]
