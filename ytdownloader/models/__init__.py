"""
Data Models Layer.

This package contains the Pydantic configuration model of the application.
"""

from .config import AppConfig

__all__ = ["AppConfig"]
