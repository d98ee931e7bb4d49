"""Configuration module -- exports Settings and load_settings."""

from total_recall.config.loader import load_settings
from total_recall.config.settings import Settings

__all__ = ["Settings", "load_settings"]
