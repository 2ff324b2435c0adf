"""Configuration package for passreset."""

from .settings import Settings, create_settings, settings

__all__ = ["Settings", "create_settings", "settings"]
