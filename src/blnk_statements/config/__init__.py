"""Configuration module for Blnk statements."""

from blnk_statements.config.logging import configure_logging
from blnk_statements.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "configure_logging"]
