"""
HTTP interface for the article fact checker
"""

from .app import create_app

__all__ = ["create_app"]
