"""Error taxonomy shared by the browser layer, the extractors and the orchestrator."""

from __future__ import annotations

from typing import Optional


class PipelineError(RuntimeError):
    """Base class for every expected failure of a scrape."""

    def __init__(self, message: str, *, url: Optional[str] = None, year: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.year = year


class LaunchError(PipelineError):
    """The headless browser or its page context could not be started."""


class NavigationTimeout(PipelineError):
    """Target page unreachable or too slow to load."""


class ExtractionTimeout(NavigationTimeout):
    """Page loaded but the expected content never appeared."""


class StructuralError(PipelineError):
    """Expected markup or columns are absent; the site layout changed."""


class ValidationRejected(PipelineError):
    """A single record failed its invariants. Dropped, never fatal."""


class UpstreamEmpty(PipelineError):
    """The upstream legitimately returned zero results."""


__all__ = [
    "PipelineError",
    "LaunchError",
    "NavigationTimeout",
    "ExtractionTimeout",
    "StructuralError",
    "ValidationRejected",
    "UpstreamEmpty",
]
