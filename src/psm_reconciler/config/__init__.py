"""Configuration module."""
from .settings import ProviderSettings, load_settings, normalize_server

__all__ = ["ProviderSettings", "load_settings", "normalize_server"]
