"""Application wiring and the command-line interface."""

from .ipl_data_app import CachedResult, IplDataApp

__all__ = ["IplDataApp", "CachedResult"]
