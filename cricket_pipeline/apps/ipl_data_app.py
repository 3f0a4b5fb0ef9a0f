"""
IPL Data App - main application object

Builds the cache, the browser session manager, the extractors, the refresh
orchestrator and the scheduler explicitly, and exposes the accessor layer the
API reads from. Accessors only read the cache; the one exception is an
explicit ``refresh=True``, which re-scrapes that single key first.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..cache import CacheStore, build_persistence
from ..common.identity import RandomIdentityProvider
from ..common.playwright_utils import BrowserSessionManager
from ..common.scraper_utils import MATCH_ABANDONED, MATCH_COMPLETED, MATCH_UPCOMING, parse_match_description
from ..core.config import Settings
from ..data_collection.scrapers.base import ScrapingConfig
from ..data_collection.scrapers.matches_scraper import MatchesScraper
from ..data_collection.scrapers.news_scraper import NewsScraper
from ..data_collection.scrapers.points_table_scraper import PointsTableScraper
from ..data_collection.scrapers.scraping_orchestrator import (
    MATCHES,
    NEWS,
    POINTS_TABLE,
    TEAMS,
    RefreshOrchestrator,
    RefreshScheduler,
    is_error_payload,
)
from ..data_collection.scrapers.teams_scraper import TeamsScraper
from ..monitoring import PrometheusMetrics


@dataclass
class CachedResult:
    data: Optional[dict[str, Any]]
    cached: bool
    error: Optional[str] = None
    # expired entry served because no fresher data could be scraped
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


class IplDataApp:
    """Hauptanwendung für IPL Data Collection"""

    def __init__(
        self,
        settings: Settings = None,
        *,
        cache: Optional[CacheStore] = None,
        session_manager: Optional[BrowserSessionManager] = None,
        metrics: Optional[PrometheusMetrics] = None,
    ):
        self.settings = settings or Settings()
        self.logger = logging.getLogger("ipl_data_app")

        self.metrics = metrics or (PrometheusMetrics() if self.settings.enable_metrics else None)
        self.cache = cache or CacheStore(
            persistence=build_persistence(self.settings),
            on_lookup=self.metrics.record_cache_lookup if self.metrics else None,
        )
        self.session_manager = session_manager or BrowserSessionManager(
            RandomIdentityProvider(),
            headless=self.settings.browser_headless,
            reuse=self.settings.browser_reuse,
            default_timeout_ms=self.settings.navigation_timeout_ms,
        )

        self.orchestrator = RefreshOrchestrator(self.settings, self.cache, self.session_manager, self.metrics)
        config = ScrapingConfig.from_settings(self.settings)
        for scraper_cls in (TeamsScraper, PointsTableScraper, MatchesScraper, NewsScraper):
            self.orchestrator.register_scraper(scraper_cls(config, self.session_manager))
        self.scheduler = RefreshScheduler(self.orchestrator)

        self._background: set[asyncio.Task] = set()
        self._pending_keys: set[str] = set()

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def start(self):
        """Kick off the startup preload and the periodic refresh in the background."""
        if self.settings.preload_on_startup:
            self._spawn(self.orchestrator.preload(), "preload")
        if self.settings.enable_periodic_refresh:
            self._spawn(self.scheduler.start_schedule(), "scheduler")
        self.logger.info("IPL Data App started")

    async def shutdown(self):
        self.scheduler.stop()
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task
        self.logger.info("IPL Data App stopped")

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.logger.error(f"Background task {task.get_name()} failed: {task.exception()}")

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    def validate_year(self, year: Optional[int]) -> int:
        year = self.settings.default_year if year is None else year
        if year not in self.settings.tracked_years:
            raise ValueError(f"Year {year} is outside the tracked seasons")
        return year

    async def _read(self, kind: str, year: Optional[int] = None, refresh: bool = False) -> CachedResult:
        key = self.orchestrator.key_for(kind, year)
        fresh = False
        if refresh:
            outcome = await self.orchestrator.refresh_key(kind, year)
            fresh = outcome["status"] in ("success", "no_data") and not outcome.get("kept_previous")

        data = self.cache.get(key, evict=False)
        if data is None:
            self._schedule_warmup(kind, year, key)
            entry = self.cache.peek(key)
            if entry is not None and not is_error_payload(entry.data):
                return CachedResult(data=entry.data, cached=True, stale=True)
            return CachedResult(data=None, cached=False, error=f"No cached data for {key} yet")
        if is_error_payload(data):
            return CachedResult(data=data, cached=True, error=data["error"])
        return CachedResult(data=data, cached=not fresh)

    def _schedule_warmup(self, kind: str, year: Optional[int], key: str) -> None:
        """Cold or expired key outside a preload: scrape it in the background, answer now."""
        if not self.settings.warm_cold_keys or self.orchestrator.is_loading or key in self._pending_keys:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self._pending_keys.add(key)

        async def warm():
            try:
                await self.orchestrator.refresh_key(kind, year)
            finally:
                self._pending_keys.discard(key)

        self._spawn(warm(), f"warmup:{key}")

    async def get_points_table(self, year: Optional[int] = None, refresh: bool = False) -> CachedResult:
        return await self._read(POINTS_TABLE, self.validate_year(year), refresh)

    async def get_matches(self, year: Optional[int] = None, refresh: bool = False) -> CachedResult:
        return await self._read(MATCHES, self.validate_year(year), refresh)

    async def get_teams(self, year: Optional[int] = None, refresh: bool = False) -> CachedResult:
        return await self._read(TEAMS, self.validate_year(year), refresh)

    async def get_news(self, limit: Optional[int] = None, refresh: bool = False) -> CachedResult:
        result = await self._read(NEWS, None, refresh)
        if result.ok and limit:
            data = dict(result.data)
            data["articles"] = data.get("articles", [])[:limit]
            result.data = data
        return result

    async def get_schedule(self, year: Optional[int] = None, refresh: bool = False) -> CachedResult:
        """Matches with parsed status, teams, scores and winner."""
        result = await self.get_matches(year, refresh)
        if not result.ok:
            return result
        matches = []
        counts = {MATCH_COMPLETED: 0, MATCH_UPCOMING: 0, MATCH_ABANDONED: 0}
        for match in result.data.get("matches", []):
            summary = parse_match_description(match.get("description"))
            counts[summary.status] += 1
            matches.append({**match, **summary.to_dict()})
        data = {
            **result.data,
            "matches": matches,
            "completedMatches": counts[MATCH_COMPLETED],
            "upcomingMatches": counts[MATCH_UPCOMING],
            "abandonedMatches": counts[MATCH_ABANDONED],
        }
        return CachedResult(data=data, cached=result.cached, stale=result.stale)

    def cache_status(self) -> dict[str, Any]:
        if self.metrics is not None:
            self.metrics.update_cache_metrics(self.cache)
        return {
            "cache": self.cache.stats(),
            "keys": {key: self.cache.entry_status(key) for key in sorted(self.cache.keys())},
            "orchestrator": self.orchestrator.status(),
            "timestamp": datetime.now().isoformat(),
        }

    async def refresh(self, year: Optional[int] = None) -> dict[str, Any]:
        if year is not None:
            year = self.validate_year(year)
        return await self.orchestrator.force_refresh(year)

    async def scrape_once(self, kind: str, year: Optional[int] = None) -> dict[str, Any]:
        """Run one extractor without touching the cache (CLI diagnostics)."""
        scraper = self.orchestrator.scrapers[kind]
        if kind in (POINTS_TABLE, MATCHES):
            year = self.validate_year(year)
        result = await scraper.scrape(year)
        return result.to_payload()
