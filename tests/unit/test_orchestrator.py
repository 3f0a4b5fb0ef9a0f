import asyncio

import pytest

from cricket_pipeline.cache import CacheStore
from cricket_pipeline.data_collection.scrapers.news_scraper import PLACEHOLDER_SOURCE
from cricket_pipeline.data_collection.scrapers.scraping_orchestrator import (
    MATCHES,
    NEWS,
    POINTS_TABLE,
    TEAMS,
    RefreshOrchestrator,
    RefreshScheduler,
    is_error_payload,
)
from cricket_pipeline.monitoring import PrometheusMetrics


def make_orchestrator(settings, scrapers, clock, metrics=None):
    orchestrator = RefreshOrchestrator(settings, CacheStore(clock=clock), metrics=metrics)
    for scraper in scrapers.values():
        orchestrator.register_scraper(scraper)
    return orchestrator


class TestKeys:
    def test_cache_keys(self, quiet_settings, stub_scrapers, clock):
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        assert orchestrator.key_for(POINTS_TABLE, 2024) == "points-table-2024"
        assert orchestrator.key_for(MATCHES, None) == "matches-2025"
        assert orchestrator.key_for(TEAMS, 2019) == "teams"
        assert orchestrator.key_for(NEWS) == "news"

    def test_year_scoped_teams_key(self, quiet_settings, stub_scrapers, clock):
        settings = quiet_settings.model_copy(update={"teams_year_invariant": False})
        orchestrator = make_orchestrator(settings, stub_scrapers, clock)
        assert orchestrator.key_for(TEAMS, 2019) == "teams-2019"

    def test_historical_ttl_for_old_seasons(self, quiet_settings, stub_scrapers, clock):
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        assert quiet_settings.hot_years == [2023, 2024, 2025]
        assert orchestrator.ttl_for(POINTS_TABLE, 2025) == quiet_settings.points_table_ttl_minutes
        assert orchestrator.ttl_for(MATCHES, 2019) == quiet_settings.historical_ttl_minutes
        assert orchestrator.ttl_for(NEWS) == quiet_settings.news_ttl_minutes


class TestPreload:
    @pytest.mark.asyncio
    async def test_preload_fills_every_key(self, quiet_settings, stub_scrapers, clock):
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        summary = await orchestrator.preload()

        assert summary["status"] == "completed"
        # teams once, two kinds per year, news once
        assert len(summary["results"]) == 2 + 2 * len(quiet_settings.tracked_years)
        assert stub_scrapers["teams"].calls == [None]
        assert stub_scrapers["news"].calls == [None]
        assert stub_scrapers["points_table"].calls == quiet_settings.tracked_years
        assert orchestrator.cache.get("points-table-2019")["year"] == 2019
        assert not orchestrator.is_loading
        assert orchestrator.last_preload_completed is not None

    @pytest.mark.asyncio
    async def test_one_failed_year_does_not_stop_the_pass(self, quiet_settings, stub_scrapers, clock):
        stub_scrapers["points_table"].fail_years = {2019}
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        summary = await orchestrator.preload()

        assert summary["results"]["points-table-2019"]["status"] == "error"
        assert summary["results"]["points-table-2020"]["status"] == "success"
        failed = orchestrator.cache.get("points-table-2019")
        assert is_error_payload(failed)
        assert failed["teams"] == []
        assert failed["errorType"] == "NavigationTimeout"
        assert orchestrator.cache.get("points-table-2020")["teams"][0]["team"] == "MI"

    @pytest.mark.asyncio
    async def test_concurrent_preload_is_rejected(self, quiet_settings, stub_scrapers, clock):
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        first, second = await asyncio.gather(orchestrator.preload([2025]), orchestrator.preload([2025]))
        assert first["status"] == "completed"
        assert second["status"] == "skipped"
        assert stub_scrapers["teams"].calls == [None]

    @pytest.mark.asyncio
    async def test_legacy_years_are_not_scraped(self, quiet_settings, stub_scrapers, clock):
        settings = quiet_settings.model_copy(update={"legacy_years": [2019]})
        orchestrator = make_orchestrator(settings, stub_scrapers, clock)
        summary = await orchestrator.preload([2019, 2020])

        assert summary["results"]["points-table-2019"]["status"] == "unavailable"
        assert 2019 not in stub_scrapers["points_table"].calls
        entry = orchestrator.cache.get("matches-2019")
        assert entry["unavailable"] is True
        assert entry["matches"] == []


class TestRefresh:
    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_previous_entry(self, quiet_settings, stub_scrapers, clock):
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        await orchestrator.refresh_key(POINTS_TABLE, 2024)
        before = orchestrator.cache.peek("points-table-2024")

        stub_scrapers["points_table"].fail_all = True
        clock.advance(1)
        result = await orchestrator.force_refresh(2024, [POINTS_TABLE])

        assert not result["success"]
        assert result["results"]["points-table-2024"]["kept_previous"]
        assert orchestrator.cache.peek("points-table-2024") is before
        assert not is_error_payload(orchestrator.cache.get("points-table-2024"))

    @pytest.mark.asyncio
    async def test_error_entry_is_replaced_by_success(self, quiet_settings, stub_scrapers, clock):
        stub_scrapers["matches"].fail_all = True
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        await orchestrator.refresh_key(MATCHES, 2025)
        assert is_error_payload(orchestrator.cache.get("matches-2025"))

        stub_scrapers["matches"].fail_all = False
        outcome = await orchestrator.refresh_key(MATCHES, 2025)
        assert outcome["status"] == "success"
        assert outcome["items_scraped"] == 2
        assert orchestrator.cache.get("matches-2025")["totalMatches"] == 2

    @pytest.mark.asyncio
    async def test_placeholder_news_keeps_real_articles(self, quiet_settings, stub_scrapers, clock):
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        await orchestrator.refresh_key(NEWS)
        before = orchestrator.cache.peek("news")

        stub_scrapers["news"].source = PLACEHOLDER_SOURCE
        outcome = await orchestrator.refresh_key(NEWS)
        assert outcome["status"] == "no_data"
        assert orchestrator.cache.peek("news") is before

    @pytest.mark.asyncio
    async def test_year_refresh_covers_year_scoped_kinds(self, quiet_settings, stub_scrapers, clock):
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        result = await orchestrator.force_refresh(2021)
        assert result["success"]
        assert set(result["results"]) == {"points-table-2021", "matches-2021"}
        assert stub_scrapers["teams"].calls == []

    @pytest.mark.asyncio
    async def test_unknown_kind(self, quiet_settings, stub_scrapers, clock):
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        with pytest.raises(ValueError):
            await orchestrator.force_refresh(2021, ["fixtures"])

    @pytest.mark.asyncio
    async def test_refresh_recent_only_touches_hot_years(self, quiet_settings, stub_scrapers, clock):
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
        results = await orchestrator.refresh_recent()
        assert stub_scrapers["points_table"].calls == [2023, 2024, 2025]
        assert len(stub_scrapers["teams"].calls) == 1
        assert "news" in results

        await orchestrator.refresh_recent()
        # teams are still cached
        assert len(stub_scrapers["teams"].calls) == 1

    @pytest.mark.asyncio
    async def test_scraping_metrics_recorded(self, quiet_settings, stub_scrapers, clock):
        metrics = PrometheusMetrics()
        stub_scrapers["news"].fail_all = True
        orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock, metrics=metrics)
        await orchestrator.refresh_key(TEAMS)
        await orchestrator.refresh_key(NEWS)
        summary = metrics.get_metrics_summary()
        assert summary["scraping_operations_total"] == 2


def test_status_coverage(quiet_settings, stub_scrapers, clock):
    orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
    orchestrator.cache.set("points-table-2025", {"teams": []}, 60)
    orchestrator.cache.set("points-table-2024", {"error": "boom", "teams": []}, 60)
    status = orchestrator.status()
    assert status["state"] == "idle"
    assert status["coverage"][POINTS_TABLE] == 1
    assert status["coverage"][TEAMS] is False
    assert status["hotYears"] == [2023, 2024, 2025]


@pytest.mark.asyncio
async def test_scheduler_stop_cancels_loop(quiet_settings, stub_scrapers, clock):
    orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
    scheduler = RefreshScheduler(orchestrator)
    task = asyncio.create_task(scheduler.start_schedule())
    await asyncio.sleep(0)
    assert scheduler.running
    scheduler.stop()
    await task
    assert not scheduler.running
    assert stub_scrapers["points_table"].calls == []


@pytest.mark.asyncio
async def test_failed_refresh_after_expiry_keeps_last_good(quiet_settings, stub_scrapers, clock):
    orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
    await orchestrator.refresh_key(POINTS_TABLE, 2025)
    before = orchestrator.cache.peek("points-table-2025")

    clock.advance(quiet_settings.points_table_ttl_minutes + 1)
    stub_scrapers["points_table"].fail_all = True
    result = await orchestrator.force_refresh(2025, [POINTS_TABLE])

    assert result["results"]["points-table-2025"]["kept_previous"]
    assert orchestrator.cache.peek("points-table-2025") is before
    assert not is_error_payload(orchestrator.cache.peek("points-table-2025").data)


@pytest.mark.asyncio
async def test_repeated_failure_leaves_error_entry_alone(quiet_settings, stub_scrapers, clock):
    stub_scrapers["matches"].fail_all = True
    orchestrator = make_orchestrator(quiet_settings, stub_scrapers, clock)
    await orchestrator.refresh_key(MATCHES, 2025)
    first = orchestrator.cache.peek("matches-2025")

    clock.advance(quiet_settings.error_ttl_minutes + 1)
    outcome = await orchestrator.refresh_key(MATCHES, 2025)
    assert outcome["status"] == "error"
    assert not outcome["kept_previous"]
    assert orchestrator.cache.peek("matches-2025") is first


@pytest.mark.asyncio
async def test_legacy_year_does_not_touch_shared_teams_key(quiet_settings, stub_scrapers, clock):
    settings = quiet_settings.model_copy(update={"legacy_years": [2019]})
    orchestrator = make_orchestrator(settings, stub_scrapers, clock)
    await orchestrator.refresh_key(TEAMS, None)

    outcome = await orchestrator.refresh_key(TEAMS, 2019)
    assert outcome["status"] == "success"
    teams = orchestrator.cache.get("teams")
    assert not is_error_payload(teams)
    assert teams["totalTeams"] == 1
    assert stub_scrapers["teams"].calls == [None, 2019]


@pytest.mark.asyncio
async def test_legacy_year_with_per_year_teams(quiet_settings, stub_scrapers, clock):
    settings = quiet_settings.model_copy(update={"legacy_years": [2019], "teams_year_invariant": False})
    orchestrator = make_orchestrator(settings, stub_scrapers, clock)
    outcome = await orchestrator.refresh_key(TEAMS, 2019)
    assert outcome["status"] == "unavailable"
    assert orchestrator.cache.get("teams-2019")["unavailable"] is True
    assert stub_scrapers["teams"].calls == []
