"""
Core Module
Central configuration and settings
"""

from .config import IPL_YEARS, Settings, settings

__all__ = ["settings", "Settings", "IPL_YEARS"]
