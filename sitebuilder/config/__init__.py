"""Configuration package for the site builder backend."""
from .settings import get_settings, Settings

__all__ = ["Settings", "get_settings"]
