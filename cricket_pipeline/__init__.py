"""
Cricket Data Pipeline
Headless-browser scraping of IPL standings, results, teams and news,
served from a TTL cache.
"""

__version__ = "1.0.0"

# NOTE:
# Avoid importing heavy modules (Playwright, FastAPI) at package import time to
# keep "import cricket_pipeline" lightweight for unit tests that only need
# the pure parsing helpers.

__all__ = []
