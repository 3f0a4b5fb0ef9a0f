"""
Match results extractor for iplt20.com.

Match cards are read from ``.vn-shedule-desk`` containers. When the site drops
that class the visible page text is scanned for fixture-looking lines instead.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from playwright.async_api import Page

from ...common.exceptions import UpstreamEmpty
from ...common.parsing import element_text, soup_from_html, text_lines
from ...common.scraper_utils import looks_like_match_line
from ...domain.models import MatchRecord
from .base import PlaywrightScraper

MATCH_CONTAINER_SELECTOR = ".vn-shedule-desk"

logger = logging.getLogger("scraper.matches")


@dataclass
class MatchesResult:
    year: int
    matches: list[MatchRecord]
    last_updated: str
    used_fallback: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "totalMatches": len(self.matches),
            "matches": [m.to_payload() for m in self.matches],
            "lastUpdated": self.last_updated,
        }


def container_descriptions(html: str) -> list[str]:
    soup = soup_from_html(html)
    texts = (" ".join(element_text(el).split()) for el in soup.select(MATCH_CONTAINER_SELECTOR))
    return [t for t in texts if t]


def fallback_descriptions(html: str) -> list[str]:
    soup = soup_from_html(html)
    root = soup.body or soup
    for tag in root.find_all(["script", "style", "noscript"]):
        tag.decompose()
    return [line for line in text_lines(root.get_text("\n")) if looks_like_match_line(line)]


def parse_matches(html: str, year: int, extracted_at: str) -> MatchesResult:
    descriptions = container_descriptions(html)
    used_fallback = False
    if not descriptions:
        used_fallback = True
        descriptions = fallback_descriptions(html)
        if descriptions:
            logger.warning(f"No match containers for {year}; using {len(descriptions)} text lines")

    matches = [
        MatchRecord(id=i, description=text, extracted=extracted_at)
        for i, text in enumerate(descriptions, start=1)
    ]
    if not matches:
        logger.info(str(UpstreamEmpty(f"No matches published for {year}", year=year)))
    return MatchesResult(year=year, matches=matches, last_updated=extracted_at, used_fallback=used_fallback)


class MatchesScraper(PlaywrightScraper):
    name = "matches"

    def build_url(self, year: Optional[int] = None) -> str:
        return f"{self.config.base_url}/matches/results/{year}"

    async def extract(self, page: Page, year: Optional[int], extracted_at: str) -> MatchesResult:
        await self.load(page, self.build_url(year), settle=True)
        return parse_matches(await page.content(), year, extracted_at)
