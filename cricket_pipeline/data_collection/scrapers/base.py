"""
Base classes and utilities for the IPL extractors.
"""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from playwright.async_api import Page

from ...common.playwright_utils import BrowserSessionManager, navigate, wait_for_content

# =============================================================================
# 1. SCRAPING CONFIGURATION
# =============================================================================


@dataclass
class ScrapingConfig:
    """Per-extractor configuration, usually built from ``Settings``."""

    base_url: str = "https://www.iplt20.com"
    navigation_timeout_ms: int = 10000
    content_wait_timeout_ms: int = 10000
    page_settle_ms: int = 3000
    delay_range: tuple = (0.0, 0.5)
    max_news_articles: int = 20

    @classmethod
    def from_settings(cls, settings) -> "ScrapingConfig":
        return cls(
            base_url=settings.base_url.rstrip("/"),
            navigation_timeout_ms=settings.navigation_timeout_ms,
            content_wait_timeout_ms=settings.content_wait_timeout_ms,
            page_settle_ms=settings.page_settle_ms,
            delay_range=(settings.scraping_delay_range_min, settings.scraping_delay_range_max),
            max_news_articles=settings.news_max_articles,
        )


# =============================================================================
# 2. UTILITIES
# =============================================================================


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-04-01T10:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def random_delay(delay_range: tuple = (0.0, 0.5)):
    """Zufällige Verzögerung"""
    low, high = delay_range
    if high <= 0:
        return
    await asyncio.sleep(random.uniform(max(low, 0.0), high))


# =============================================================================
# 3. BASE SCRAPER
# =============================================================================


class PlaywrightScraper(ABC):
    """Navigates one page per scrape and hands the rendered DOM to a pure parser.

    Subclasses set ``name`` and implement ``build_url`` and ``extract``.
    The page (and its browser context) is released on every exit path by
    ``BrowserSessionManager.page()``.
    """

    name: str = "base"

    def __init__(self, config: ScrapingConfig, session_manager: BrowserSessionManager):
        self.config = config
        self.session_manager = session_manager
        self.logger = logging.getLogger(f"scraper.{self.name}")

    @abstractmethod
    def build_url(self, year: Optional[int] = None) -> str:
        """Target URL for ``year``"""

    @abstractmethod
    async def extract(self, page: Page, year: Optional[int], extracted_at: str) -> Any:
        """Navigate ``page`` and return the normalized result"""

    async def scrape(self, year: Optional[int] = None, *, extracted_at: Optional[str] = None) -> Any:
        extracted_at = extracted_at or utc_timestamp()
        self.logger.info(f"Scraping {self.build_url(year)}")
        async with self.session_manager.page() as page:
            return await self.extract(page, year, extracted_at)

    async def load(self, page: Page, url: str, wait_selector: Optional[str] = None, settle: bool = False):
        """Navigate, optionally wait for ``wait_selector``, optionally let scripts settle."""
        await navigate(page, url, timeout_ms=self.config.navigation_timeout_ms)
        if wait_selector:
            await wait_for_content(page, wait_selector, timeout_ms=self.config.content_wait_timeout_ms)
        if settle and self.config.page_settle_ms > 0:
            await page.wait_for_timeout(self.config.page_settle_ms)
