"""
Scraping Orchestrator for the Cricket Data Pipeline

Coordinates every extractor run, writes results into the cache store and
drives the periodic refresh of the most recent seasons.
"""

import asyncio
import contextlib
import logging
import time
from datetime import datetime
from typing import Any, Optional

from ...cache.store import CacheStore
from ...common.exceptions import PipelineError
from ...core.config import Settings
from .base import PlaywrightScraper, random_delay, utc_timestamp
from .news_scraper import PLACEHOLDER_SOURCE

POINTS_TABLE = "points_table"
MATCHES = "matches"
TEAMS = "teams"
NEWS = "news"

# cache key prefix and the collection field of an error-shaped entry, per kind
KEY_PREFIXES = {POINTS_TABLE: "points-table", MATCHES: "matches", TEAMS: "teams", NEWS: "news"}
COLLECTION_FIELDS = {POINTS_TABLE: "teams", MATCHES: "matches", TEAMS: "teams", NEWS: "articles"}
YEAR_SCOPED_KINDS = (POINTS_TABLE, MATCHES)

STATE_IDLE = "idle"
STATE_PRELOADING = "preloading"


def is_error_payload(data: Any) -> bool:
    return isinstance(data, dict) and "error" in data


def error_payload(kind: str, year: Optional[int], exc: BaseException) -> dict[str, Any]:
    return {
        "error": str(exc) or type(exc).__name__,
        "errorType": type(exc).__name__,
        "year": year,
        COLLECTION_FIELDS[kind]: [],
        "lastUpdated": utc_timestamp(),
    }


def unavailable_payload(kind: str, year: int) -> dict[str, Any]:
    return {
        "error": f"Data for {year} is not available from the upstream site",
        "errorType": "Unavailable",
        "unavailable": True,
        "year": year,
        COLLECTION_FIELDS[kind]: [],
        "lastUpdated": utc_timestamp(),
    }


class RefreshOrchestrator:
    """Runs extractors sequentially and keeps the cache populated.

    A failed scrape never raises out of here: it becomes an error-shaped cache
    entry for a cold key. An existing entry, fresh or expired, is left as is.
    """

    def __init__(self, settings: Settings, cache: CacheStore, session_manager=None, metrics=None):
        self.settings = settings
        self.cache = cache
        self.session_manager = session_manager
        self.metrics = metrics
        self.scrapers: dict[str, PlaywrightScraper] = {}
        self.logger = logging.getLogger("refresh_orchestrator")
        self.state = STATE_IDLE
        self.last_preload_started: Optional[str] = None
        self.last_preload_completed: Optional[str] = None
        self.last_results: dict[str, dict[str, Any]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def register_scraper(self, scraper: PlaywrightScraper):
        """Registriert einen neuen Scraper"""
        self.scrapers[scraper.name] = scraper
        self.logger.info(f"Registered scraper: {scraper.name}")

    @property
    def is_loading(self) -> bool:
        return self.state == STATE_PRELOADING

    # ------------------------------------------------------------------
    # keys and TTLs
    # ------------------------------------------------------------------

    def key_for(self, kind: str, year: Optional[int] = None) -> str:
        prefix = KEY_PREFIXES[kind]
        if kind == NEWS or (kind == TEAMS and self.settings.teams_year_invariant):
            return prefix
        return f"{prefix}-{year if year is not None else self.settings.default_year}"

    def ttl_for(self, kind: str, year: Optional[int] = None) -> int:
        if kind == NEWS:
            return self.settings.news_ttl_minutes
        if kind == TEAMS:
            return self.settings.teams_ttl_minutes
        if year is not None and year not in self.settings.hot_years:
            return self.settings.historical_ttl_minutes
        if kind == POINTS_TABLE:
            return self.settings.points_table_ttl_minutes
        return self.settings.matches_ttl_minutes

    def has_good_entry(self, key: str) -> bool:
        entry = self.cache.peek(key)
        return self.cache.has_valid(key) and not is_error_payload(entry.data)

    def has_last_good(self, key: str) -> bool:
        """A non-error entry exists, expired or not."""
        entry = self.cache.peek(key)
        return entry is not None and not is_error_payload(entry.data)

    def _is_year_keyed(self, kind: str) -> bool:
        return kind in YEAR_SCOPED_KINDS or (kind == TEAMS and not self.settings.teams_year_invariant)

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def _pause(self):
        await asyncio.sleep(self.settings.inter_request_delay_ms / 1000)
        await random_delay((self.settings.scraping_delay_range_min, self.settings.scraping_delay_range_max))

    # ------------------------------------------------------------------
    # single key
    # ------------------------------------------------------------------

    async def refresh_key(self, kind: str, year: Optional[int] = None) -> dict[str, Any]:
        """Scrape one key now and store the outcome."""
        if kind in YEAR_SCOPED_KINDS and year is None:
            year = self.settings.default_year
        key = self.key_for(kind, year)

        if year is not None and year in self.settings.legacy_years and self._is_year_keyed(kind):
            self.cache.set(key, unavailable_payload(kind, year), self.settings.historical_ttl_minutes)
            return self._finish(key, kind, {"status": "unavailable", "items_scraped": 0})

        scraper = self.scrapers.get(kind)
        if scraper is None:
            self.logger.warning(f"Scraper {kind} not found")
            return {"status": "error", "key": key, "error": f"no scraper registered for {kind}", "items_scraped": 0}

        async with self._lock_for(key):
            start_time = datetime.now()
            started = time.monotonic()
            try:
                result = await scraper.scrape(year)
            except Exception as e:
                if isinstance(e, PipelineError):
                    self.logger.error(f"Scraping {key} failed: {type(e).__name__}: {e}")
                else:
                    self.logger.exception(f"Unexpected failure while scraping {key}")
                # any previous entry, even an expired one, wins over an error
                kept = self.has_last_good(key)
                if self.cache.peek(key) is None:
                    self.cache.set(key, error_payload(kind, year, e), self.settings.error_ttl_minutes)
                return self._finish(
                    key,
                    kind,
                    {
                        "status": "error",
                        "error": str(e),
                        "error_type": type(e).__name__,
                        "kept_previous": kept,
                        "items_scraped": 0,
                        "duration_seconds": (datetime.now() - start_time).total_seconds(),
                    },
                    time.monotonic() - started,
                )

            payload = result.to_payload()
            items = len(payload.get(COLLECTION_FIELDS[kind], []))
            if getattr(result, "source", None) == PLACEHOLDER_SOURCE and self.has_last_good(key):
                self.logger.warning(f"Only placeholders for {key}; keeping cached articles")
                status = "no_data"
                kept = True
            else:
                kept = False
                self.cache.set(key, payload, self.ttl_for(kind, year))
                status = "success" if items else "no_data"
                self.logger.info(f"Scraped {items} items for {key}")
            return self._finish(
                key,
                kind,
                {
                    "status": status,
                    "items_scraped": items,
                    "kept_previous": kept,
                    "duration_seconds": (datetime.now() - start_time).total_seconds(),
                },
                time.monotonic() - started,
            )

    def _finish(self, key: str, kind: str, outcome: dict[str, Any], elapsed: Optional[float] = None):
        outcome["key"] = key
        self.last_results[key] = outcome
        if self.metrics is not None and elapsed is not None:
            self.metrics.record_scraping_operation(kind, outcome["status"], elapsed)
        return outcome

    # ------------------------------------------------------------------
    # passes
    # ------------------------------------------------------------------

    async def preload(self, years: Optional[list[int]] = None) -> dict[str, Any]:
        """Teams, then standings for every year, then matches for every year, then news."""
        if self.is_loading:
            self.logger.warning("Preload already in progress; ignoring request")
            return {"status": "skipped", "results": {}}

        years = list(years if years is not None else self.settings.tracked_years)
        self.state = STATE_PRELOADING
        self.last_preload_started = utc_timestamp()
        results: dict[str, dict[str, Any]] = {}
        self.logger.info(f"Preloading {len(years)} seasons")
        try:
            async with self._shared_browser():
                plan = self._preload_plan(years)
                for i, (kind, year) in enumerate(plan):
                    outcome = await self.refresh_key(kind, year)
                    results[outcome["key"]] = outcome
                    if i < len(plan) - 1 and outcome["status"] != "unavailable":
                        await self._pause()
        finally:
            self.state = STATE_IDLE
            self.last_preload_completed = utc_timestamp()

        failed = sum(1 for r in results.values() if r["status"] == "error")
        self.logger.info(f"Preload finished: {len(results)} keys, {failed} failed")
        return {"status": "completed", "results": results}

    def _preload_plan(self, years: list[int]) -> list[tuple]:
        plan: list[tuple] = []
        if self.settings.teams_year_invariant:
            plan.append((TEAMS, None))
        else:
            plan.extend((TEAMS, y) for y in years)
        plan.extend((POINTS_TABLE, y) for y in years)
        plan.extend((MATCHES, y) for y in years)
        plan.append((NEWS, None))
        return plan

    async def refresh_recent(self) -> dict[str, Any]:
        """Hot seasons only; older seasons are final once scraped."""
        results: dict[str, dict[str, Any]] = {}
        async with self._shared_browser():
            for year in self.settings.hot_years:
                for kind in YEAR_SCOPED_KINDS:
                    outcome = await self.refresh_key(kind, year)
                    results[outcome["key"]] = outcome
                    await self._pause()
            if not self.has_good_entry(self.key_for(TEAMS, self.settings.default_year)):
                outcome = await self.refresh_key(TEAMS, self.settings.default_year)
                results[outcome["key"]] = outcome
                await self._pause()
            outcome = await self.refresh_key(NEWS)
            results[outcome["key"]] = outcome
        return results

    async def force_refresh(self, year: Optional[int] = None, kinds: Optional[list[str]] = None) -> dict[str, Any]:
        """Bypass TTLs: one year (all its kinds), selected kinds, or everything."""
        if year is None and not kinds:
            if self.is_loading:
                return {"success": False, "message": "A full refresh is already running", "results": {}}
            summary = await self.preload()
            results = summary["results"]
            failed = [k for k, r in results.items() if r["status"] == "error"]
            return {
                "success": not failed,
                "message": f"Refreshed {len(results) - len(failed)} of {len(results)} cache keys",
                "results": results,
            }

        if kinds:
            unknown = [k for k in kinds if k not in KEY_PREFIXES]
            if unknown:
                raise ValueError(f"Unknown data kind(s): {', '.join(unknown)}")
        else:
            kinds = list(YEAR_SCOPED_KINDS)
            if not self.settings.teams_year_invariant:
                kinds.append(TEAMS)

        results: dict[str, dict[str, Any]] = {}
        async with self._shared_browser():
            for kind in kinds:
                outcome = await self.refresh_key(kind, year)
                results[outcome["key"]] = outcome
        failed = [k for k, r in results.items() if r["status"] == "error"]
        label = f"year {year}" if year is not None else ", ".join(kinds)
        message = (
            f"Refreshed {label}"
            if not failed
            else f"Refresh of {label} failed for {', '.join(failed)}; previous data kept where available"
        )
        return {"success": not failed, "message": message, "year": year, "results": results}

    def _shared_browser(self):
        if self.session_manager is None:
            return contextlib.nullcontext()
        return self.session_manager.shared()

    # ------------------------------------------------------------------
    # diagnostics
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        coverage = {
            kind: sum(1 for y in self.settings.tracked_years if self.has_good_entry(self.key_for(kind, y)))
            for kind in YEAR_SCOPED_KINDS
        }
        coverage[TEAMS] = self.has_good_entry(self.key_for(TEAMS, self.settings.default_year))
        coverage[NEWS] = self.has_good_entry(self.key_for(NEWS))
        return {
            "state": self.state,
            "isLoading": self.is_loading,
            "lastPreloadStarted": self.last_preload_started,
            "lastPreloadCompleted": self.last_preload_completed,
            "availableYears": list(self.settings.tracked_years),
            "hotYears": self.settings.hot_years,
            "legacyYears": list(self.settings.legacy_years),
            "coverage": coverage,
        }


class RefreshScheduler:
    """Scheduler for the periodic refresh of the hot seasons"""

    def __init__(self, orchestrator: RefreshOrchestrator):
        self.orchestrator = orchestrator
        self.logger = logging.getLogger("refresh_scheduler")
        self.running = False
        self.tasks: list[asyncio.Task] = []

    async def start_schedule(self):
        """Startet den Scheduler"""
        self.running = True
        self.tasks = [asyncio.create_task(self._refresh_loop())]
        try:
            await asyncio.gather(*self.tasks)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            self.logger.error(f"Scheduler error: {e}")
        finally:
            self.running = False

    async def _refresh_loop(self):
        settings = self.orchestrator.settings
        while self.running:
            try:
                await asyncio.sleep(settings.refresh_interval_minutes * 60)
                if self.orchestrator.is_loading:
                    self.logger.info("Preload still running; skipping periodic refresh")
                    continue
                results = await self.orchestrator.refresh_recent()
                self.logger.info(f"Periodic refresh: {len(results)} keys")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Refresh loop error: {e}")
                await asyncio.sleep(settings.refresh_error_backoff_seconds)

    def stop(self):
        """Stoppt den Scheduler"""
        self.running = False
        for task in self.tasks:
            if not task.done():
                task.cancel()
        self.logger.info("Refresh scheduler stopped")
