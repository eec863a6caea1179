"""Configuration module."""

from livetranslate.config.constants import RelayConstants
from livetranslate.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "RelayConstants"]
