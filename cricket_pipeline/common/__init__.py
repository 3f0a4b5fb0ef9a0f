"""
Shared helpers: logging, error taxonomy, browser sessions and parsing.

Import concrete helpers from their modules directly.
"""

__all__: list[str] = []
