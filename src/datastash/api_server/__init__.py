# src/datastash/api_server/__init__.py
"""
HTTP Data API for datastash.
"""

from .main import create_app

__all__ = ["create_app"]
