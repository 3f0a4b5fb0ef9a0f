"""Global pytest fixtures.

Centralizes:
 - Project root path insertion (so individual tests don't repeat sys.path hacks)
 - Static HTML snapshots of the iplt20.com pages the extractors read
 - Stub scrapers, a controllable clock and quiet settings for orchestrator/API tests
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Ensure project root (containing cricket_pipeline/) is on sys.path once
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from cricket_pipeline.common.exceptions import NavigationTimeout  # noqa: E402
from cricket_pipeline.core.config import Settings  # noqa: E402

EXTRACTED_AT = "2025-04-01T10:00:00.000Z"
SAMPLE_RESULT = "Mumbai Indians won by 6 wickets MI 180/4 (19.2 OV) CSK 178/8 (20 OV)"


# -------------------- Settings / clock -------------------- #


@pytest.fixture
def quiet_settings():
    """No delays, no browser reuse, no background work."""
    return Settings(
        tracked_years=[2019, 2020, 2021, 2022, 2023, 2024, 2025],
        default_year=2025,
        inter_request_delay_ms=0,
        scraping_delay_range_min=0.0,
        scraping_delay_range_max=0.0,
        browser_reuse=False,
        preload_on_startup=False,
        enable_periodic_refresh=False,
        warm_cold_keys=False,
        cache_persistence="none",
        enable_metrics=True,
    )


class FakeClock:
    """Epoch-ms clock advanced by hand."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += int(minutes * 60 * 1000)


@pytest.fixture
def clock():
    return FakeClock()


# -------------------- Stub scrapers -------------------- #


class StubResult:
    def __init__(self, payload, source=None):
        self.payload = payload
        self.source = source

    def to_payload(self):
        return self.payload


def stub_payload(name, year):
    if name == "points_table":
        return {
            "year": year,
            "teams": [{"position": 1, "team": "MI", "played": 14, "points": 20}],
            "totalTeams": 1,
            "lastUpdated": EXTRACTED_AT,
        }
    if name == "matches":
        return {
            "year": year,
            "totalMatches": 2,
            "matches": [
                {"id": 1, "description": SAMPLE_RESULT, "extracted": EXTRACTED_AT},
                {"id": 2, "description": "Match 2 RCB vs KKR 7:30 PM", "extracted": EXTRACTED_AT},
            ],
            "lastUpdated": EXTRACTED_AT,
        }
    if name == "teams":
        return {
            "teams": [{"id": "1", "name": "Mumbai Indians", "shortName": "MI", "totalTitles": 5, "isChampion": True}],
            "totalTeams": 1,
            "championTeams": 1,
            "lastUpdated": EXTRACTED_AT,
            "source": "https://www.iplt20.com/teams",
        }
    return {
        "articles": [{"id": i, "title": f"IPL headline number {i}"} for i in range(1, 6)],
        "totalArticles": 5,
        "lastUpdated": EXTRACTED_AT,
        "source": "iplt20.com/news",
    }


class StubScraper:
    """Stands in for a PlaywrightScraper; fails for chosen years or always."""

    def __init__(self, name, fail_years=(), fail_all=False):
        self.name = name
        self.fail_years = set(fail_years)
        self.fail_all = fail_all
        self.source = None
        self.calls = []

    async def scrape(self, year=None, *, extracted_at=None):
        self.calls.append(year)
        if self.fail_all or year in self.fail_years:
            raise NavigationTimeout(f"Timed out loading {self.name} {year}", year=year)
        return StubResult(stub_payload(self.name, year), self.source)


@pytest.fixture
def stub_scrapers():
    return {name: StubScraper(name) for name in ("teams", "points_table", "matches", "news")}


class GatedScraper(StubScraper):
    """Holds every scrape until the gate opens."""

    def __init__(self, name):
        super().__init__(name)
        self.gate = asyncio.Event()
        self.started = asyncio.Event()

    async def scrape(self, year=None, *, extracted_at=None):
        self.started.set()
        await self.gate.wait()
        return await super().scrape(year, extracted_at=extracted_at)


@pytest.fixture
def gated_scraper():
    return GatedScraper


# -------------------- HTML Fixtures -------------------- #


@pytest.fixture
def points_table_html():
    return """
    <html><body>
      <table class="ih-td-tab">
        <tr>
          <th>POS</th><th>TEAM</th><th>P</th><th>W</th><th>L</th><th>NR</th>
          <th>NRR</th><th>FOR</th><th>AGAINST</th><th>PTS</th><th>RECENT FORM</th>
        </tr>
        <tr>
          <td>1</td><td>MI</td><td>14</td><td>10</td><td>4</td><td>0</td>
          <td>1.542</td><td>1960/0</td><td>1800/0</td><td>20</td><td>WWWLW</td>
        </tr>
        <tr>
          <td>2</td><td>CSK</td><td>14</td><td>9</td><td>5</td><td>0</td>
          <td>0.809</td><td>2100/270.1</td><td>2020/278.3</td><td>18</td><td>WLWWL</td>
        </tr>
        <tr>
          <td>3</td><td>X</td><td>14</td><td>8</td><td>6</td><td>0</td>
          <td>0.1</td><td>1900/0</td><td>1890/0</td><td>16</td><td>LLWWW</td>
        </tr>
        <tr>
          <td>4</td><td>TOOLONG</td><td>14</td><td>7</td><td>7</td><td>0</td>
          <td>-0.2</td><td>1800/0</td><td>1850/0</td><td>14</td><td>WLWLW</td>
        </tr>
        <tr><td>5</td><td>RR</td><td>14</td></tr>
        <tr>
          <td>6</td><td>SRH</td><td>14</td><td>6</td><td>7</td><td>1</td>
          <td>-0.45*</td><td>1750/0</td><td>1800/0</td><td>13</td><td>LWLNL</td>
        </tr>
      </table>
    </body></html>
    """


@pytest.fixture
def matches_html():
    return f"""
    <html><body>
      <div class="vn-shedule-desk">
        <span>{SAMPLE_RESULT}</span>
      </div>
      <div class="vn-shedule-desk">
        Match Abandoned   RCB   KKR
      </div>
      <div class="vn-shedule-desk"></div>
      <div class="vn-shedule-desk">Match 70 SRH vs PBKS 7:30 PM IST</div>
    </body></html>
    """


@pytest.fixture
def matches_fallback_html():
    return """
    <html><head><script>var x = "MI vs CSK";</script></head><body>
      <p>Welcome to the results page</p>
      <div>Match 1 MI vs CSK</div>
      <div>Royal Challengers V/S Titans</div>
      <div>RCB beat KKR comfortably</div>
      <div>schedule coming soon</div>
    </body></html>
    """


@pytest.fixture
def news_html():
    return """
    <html><body>
      <article>
        <a href="/news/4001/mi-clinch-thriller"><img src="/images/mi.jpg"></a>
        <h3>MI clinch last-over thriller against CSK</h3>
        <p>Mumbai Indians chased down 178 with two balls to spare at the Wankhede.</p>
        <time datetime="2025-04-01">1 April 2025</time>
      </article>
      <article>
        <h3>undefined undefined undefined</h3>
      </article>
      <article>
        <h3>Short</h3>
      </article>
      <article>
        <a href="https://www.iplt20.com/news/4002/rcb-injury-update">
          <h2>RCB injury update ahead of the weekend double-header</h2>
        </a>
      </article>
    </body></html>
    """


@pytest.fixture
def news_keyword_html():
    return """
    <html><body>
      <h2>Player of the match award goes to the young spinner</h2>
      <p>Cookie policy and terms of service for this website apply here.</p>
      <p>tiny IPL</p>
      <p>The IPL final will be played in Ahmedabad later this month</p>
    </body></html>
    """


@pytest.fixture
def team_anchors():
    """Snapshot shape produced by the teams page DOM script."""
    return [
        {
            "href": "https://www.iplt20.com/teams/chennai-super-kings",
            "text": "\n  Chennai Super Kings  5 \n",
            "levels": [
                {"images": ["https://documents.iplt20.com/ipl/CSK/logos/Logooutline/CSKoutline.png"], "trophies": []},
                {
                    "images": [],
                    "trophies": [
                        {"text": "2010 | 2011 | 2018 | 2021 | 2023", "distance": 40},
                        {"text": "2013 | 2015 | 2017 | 2019 | 2020", "distance": 900},
                    ],
                },
            ],
        },
        {
            "href": "https://www.iplt20.com/teams/chennai-super-kings",
            "text": "CSK duplicate link",
            "levels": [],
        },
        {
            "href": "https://www.iplt20.com/teams/delhi-capitals",
            "text": "Delhi Capitals",
            "levels": [
                {
                    "images": [
                        "https://documents.iplt20.com/ipl/assets/images/banner.png",
                        "https://documents.iplt20.com/ipl/DC/Logos/LogoOutline/DCoutline.png",
                    ],
                    "trophies": [{"text": "Runners-up 2020", "distance": 10}],
                }
            ],
        },
        {"href": "https://www.iplt20.com/teams/xy", "text": "XY", "levels": []},
        {"href": "https://www.iplt20.com/teams", "text": "All Teams", "levels": []},
        {"href": "https://www.iplt20.com/teams/kochi-tuskers-kerala", "text": "", "levels": []},
    ]
