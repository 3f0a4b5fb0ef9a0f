"""
News extractor for iplt20.com/news.

The news page has no stable markup, so extraction is an ordered list of
strategies. Each strategy is a pure function of the parsed page that returns a
list of articles or None; the first non-empty answer wins. The last strategy
always answers, with placeholder articles, so callers never see zero news.
"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Page
from pydantic import ValidationError

from ...common.exceptions import NavigationTimeout
from ...common.parsing import clean_text, element_text, soup_from_html
from ...domain.models import NewsArticle, is_valid_news_title
from .base import PlaywrightScraper

NEWS_SOURCE = "iplt20.com/news"
PLACEHOLDER_SOURCE = "placeholder"
ARTICLE_SELECTORS: tuple = (
    "article",
    ".news-item",
    ".article-item",
    '[class*="news"]',
    '[class*="article"]',
    'a[href*="/news/"]',
)
ELEMENTS_PER_SELECTOR = 20
NEWS_KEYWORDS: tuple = ("IPL", "match", "player", "team", "win", "score")

PLACEHOLDER_ARTICLES: tuple = (
    {
        "title": "IPL 2025: Tournament Updates Available",
        "summary": "Stay tuned for the latest IPL 2025 news, match updates, and team announcements.",
        "path": "/news",
        "category": "Tournament Update",
    },
    {
        "title": "Points Table Updates: Latest Team Standings",
        "summary": "Check the latest points table to see how your favorite teams are performing in IPL 2025.",
        "path": "/points-table",
        "category": "Standings",
    },
    {
        "title": "Match Schedule: Upcoming Fixtures",
        "summary": "View the complete match schedule and plan your viewing for upcoming IPL matches.",
        "path": "/matches",
        "category": "Fixtures",
    },
)

logger = logging.getLogger("scraper.news")


@dataclass
class NewsResult:
    articles: list[NewsArticle]
    last_updated: str
    source: str = NEWS_SOURCE
    strategy: str = ""

    def limited(self, limit: Optional[int]) -> list[NewsArticle]:
        return self.articles if not limit or limit < 0 else self.articles[:limit]

    def to_payload(self, limit: Optional[int] = None) -> dict[str, Any]:
        return {
            "articles": [a.to_payload() for a in self.limited(limit)],
            "totalArticles": len(self.articles),
            "lastUpdated": self.last_updated,
            "source": self.source,
        }


def _build_articles(candidates: list[dict], extracted_at: str) -> list[NewsArticle]:
    articles = []
    for candidate in candidates:
        try:
            articles.append(NewsArticle(id=len(articles) + 1, extracted=extracted_at, **candidate))
        except ValidationError as e:
            logger.debug(f"Dropped news candidate {candidate.get('title', '')[:40]!r}: {e.error_count()} error(s)")
    return articles


def _article_from_element(el: Tag, base_url: str) -> dict[str, Any]:
    title_el = el.select_one('h1, h2, h3, h4, .title, [class*="title"]') or el
    summary_el = el.select_one('p, .summary, .description, [class*="summary"]')
    link_el = el if el.name == "a" else el.find("a")
    date_el = el.select_one('time, .date, [class*="date"]')
    image_el = el.find("img")

    href = link_el.get("href") if link_el is not None else None
    src = image_el.get("src") if image_el is not None else None
    published = element_text(date_el) or (date_el.get("datetime", "") if date_el is not None else "")
    return {
        "title": clean_text(element_text(title_el)) or "",
        "summary": clean_text(element_text(summary_el)) or "",
        "link": urljoin(base_url, href) if href else "",
        "image": urljoin(base_url, src) if src else "",
        "published_date": published,
        "category": "News",
    }


def selector_strategy(selector: str, soup: BeautifulSoup, base_url: str, extracted_at: str) -> Optional[list[NewsArticle]]:
    candidates = [
        _article_from_element(el, base_url) for el in soup.select(selector)[:ELEMENTS_PER_SELECTOR]
    ]
    articles = _build_articles([c for c in candidates if is_valid_news_title(c["title"])], extracted_at)
    return articles or None


def keyword_scan_strategy(soup: BeautifulSoup, base_url: str, extracted_at: str) -> Optional[list[NewsArticle]]:
    candidates = []
    for node in soup.find_all(["h1", "h2", "h3", "h4", "p"]):
        text = element_text(node)
        if not 20 < len(text) < 150 or not any(k in text for k in NEWS_KEYWORDS):
            continue
        candidates.append({"title": text[:100], "summary": text[100:250], "category": "News"})
    return _build_articles(candidates, extracted_at) or None


def placeholder_strategy(soup: Optional[BeautifulSoup], base_url: str, extracted_at: str) -> list[NewsArticle]:
    return [
        NewsArticle(
            id=i,
            title=item["title"],
            summary=item["summary"],
            link=f"{base_url}{item['path']}",
            published_date=extracted_at[:10],
            category=item["category"],
            source=PLACEHOLDER_SOURCE,
            extracted=extracted_at,
        )
        for i, item in enumerate(PLACEHOLDER_ARTICLES, start=1)
    ]


DEFAULT_STRATEGIES: tuple = tuple(
    (f"selector:{sel}", partial(selector_strategy, sel)) for sel in ARTICLE_SELECTORS
) + (("keyword_scan", keyword_scan_strategy), ("placeholder", placeholder_strategy))


def parse_news(
    html: str,
    base_url: str,
    extracted_at: str,
    *,
    limit: int = 20,
    strategies: tuple = DEFAULT_STRATEGIES,
) -> NewsResult:
    soup = soup_from_html(html)
    for name, strategy in strategies:
        articles = strategy(soup, base_url, extracted_at)
        if articles:
            source = PLACEHOLDER_SOURCE if name == "placeholder" else NEWS_SOURCE
            logger.info(f"Found {len(articles)} news articles using {name}")
            return NewsResult(articles=articles[:limit], last_updated=extracted_at, source=source, strategy=name)
    return NewsResult(articles=[], last_updated=extracted_at, strategy="none")


class NewsScraper(PlaywrightScraper):
    name = "news"

    def build_url(self, year: Optional[int] = None) -> str:
        return f"{self.config.base_url}/news"

    async def extract(self, page: Page, year: Optional[int], extracted_at: str) -> NewsResult:
        try:
            await self.load(page, self.build_url(year), settle=True)
        except NavigationTimeout as e:
            self.logger.warning(f"News page unavailable, serving placeholders: {e}")
            return NewsResult(
                articles=placeholder_strategy(None, self.config.base_url, extracted_at),
                last_updated=extracted_at,
                source=PLACEHOLDER_SOURCE,
                strategy="placeholder",
            )
        return parse_news(
            await page.content(),
            self.config.base_url,
            extracted_at,
            limit=self.config.max_news_articles,
        )
