"""Configuration values for ClipInspect."""

from .settings import SETTINGS, Settings, load_settings

__all__ = ["SETTINGS", "Settings", "load_settings"]
