"""
Central configuration for the Cricket Data Pipeline
Based on Pydantic Settings with environment variable support
"""

from typing import Optional

from pydantic_settings import BaseSettings

IPL_YEARS: list[int] = list(range(2008, 2026))


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Upstream site
    base_url: str = "https://www.iplt20.com"
    tracked_years: list[int] = IPL_YEARS
    default_year: int = 2025
    # Years the upstream no longer serves; cached as "unavailable" without scraping
    legacy_years: list[int] = []
    # Number of most recent tracked years re-scraped by the periodic refresh
    hot_years_count: int = 3
    # Teams page is identical for every season; one shared cache key when True
    teams_year_invariant: bool = True
    news_max_articles: int = 20

    # Browser
    browser_headless: bool = True
    browser_reuse: bool = True
    navigation_timeout_ms: int = 10000
    content_wait_timeout_ms: int = 10000
    page_settle_ms: int = 3000

    # Scraping / scheduling
    refresh_interval_minutes: int = 30
    refresh_error_backoff_seconds: int = 300
    inter_request_delay_ms: int = 500
    scraping_delay_range_min: float = 0.0
    scraping_delay_range_max: float = 0.5

    # Cache TTLs (minutes)
    points_table_ttl_minutes: int = 60
    matches_ttl_minutes: int = 60
    teams_ttl_minutes: int = 24 * 60
    news_ttl_minutes: int = 30
    historical_ttl_minutes: int = 7 * 24 * 60
    error_ttl_minutes: int = 30

    # Cache persistence: none | disk | redis
    cache_persistence: str = "none"
    cache_dir: str = ".cache"
    redis_url: str = "redis://localhost:6379"
    redis_key_prefix: str = "ipl-cache:"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3002
    api_prefix: str = "/api"
    cors_origins: list[str] = ["*"]
    retry_after_seconds: int = 60
    preload_on_startup: bool = True
    enable_periodic_refresh: bool = True
    # A read of a never-cached key schedules a background scrape of that key
    warm_cold_keys: bool = True

    # Monitoring
    log_level: str = "INFO"
    log_format: str = "console"
    log_file_path: Optional[str] = None
    enable_metrics: bool = True

    # api_only | preload_once
    run_mode: str = "api_only"
    environment: str = "development"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @property
    def hot_years(self) -> list[int]:
        """Most recent tracked years, newest last."""
        years = sorted(self.tracked_years)
        return years[-self.hot_years_count:] if self.hot_years_count > 0 else []


# Global Settings Instance
settings = Settings()
