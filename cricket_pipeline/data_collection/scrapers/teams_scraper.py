"""
Teams extractor for iplt20.com/teams.

The page renders logos and trophy years next to, not inside, each team link.
A DOM script therefore records, for each of up to five ancestor levels of a
link, the image URLs and the trophy texts with their bounding-box distance to
the link. ``build_team_profiles`` turns that raw snapshot into profiles.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from ...common.exceptions import StructuralError, UpstreamEmpty
from ...common.scraper_utils import (
    count_titles,
    is_championship_text,
    short_code_for_slug,
    team_slug_from_url,
    title_from_slug,
)
from ...domain.models import TeamProfile
from .base import PlaywrightScraper

TEAMS_SOURCE = "https://www.iplt20.com/teams"
MAX_ANCESTOR_LEVELS = 5
TROPHY_MAX_DISTANCE = 200

TEAM_ANCHORS_SCRIPT = """
() => Array.from(document.querySelectorAll('a[href*="/teams/"]')).map(link => {
    const linkRect = link.getBoundingClientRect();
    const levels = [];
    let node = link;
    for (let level = 0; level < %d; level++) {
        node = node.parentElement;
        if (!node) break;
        const images = Array.from(node.querySelectorAll('img')).map(img => img.src || '');
        const trophies = Array.from(node.querySelectorAll('.team-on-hover')).map(hover => {
            const label = hover.querySelector('.trophy-text-align');
            const rect = hover.getBoundingClientRect();
            return {
                text: label ? (label.textContent || '').trim() : '',
                distance: Math.abs(linkRect.top - rect.top) + Math.abs(linkRect.left - rect.left),
            };
        }).filter(t => t.text);
        levels.push({ images, trophies });
    }
    return { href: link.href, text: link.textContent || '', levels };
})
""" % MAX_ANCESTOR_LEVELS

_NAME_PATTERN = re.compile(r"([A-Za-z\s]+?)(?:\s+\d+|\s*$)")

logger = logging.getLogger("scraper.teams")


@dataclass
class TeamsResult:
    teams: list[TeamProfile]
    last_updated: str
    source: str = TEAMS_SOURCE

    @property
    def champion_teams(self) -> int:
        return sum(1 for t in self.teams if t.is_champion)

    def to_payload(self) -> dict[str, Any]:
        return {
            "teams": [t.to_payload() for t in self.teams],
            "totalTeams": len(self.teams),
            "championTeams": self.champion_teams,
            "lastUpdated": self.last_updated,
            "source": self.source,
        }


def clean_team_name(text: str, slug: str) -> str:
    """Display name from link text ("Chennai Super Kings 5" -> "Chennai Super Kings")."""
    name = " ".join((text or "").split())
    m = _NAME_PATTERN.search(name)
    if m and len(m.group(1).strip()) > 3:
        name = m.group(1).strip()
    if len(name) < 3:
        name = title_from_slug(slug)
    return name


def is_team_logo(src: str, slug: str, short_code: str) -> bool:
    url = (src or "").lower()
    if "logos" not in url and "logooutline" not in url:
        return False
    sc = short_code.lower()
    markers = (f"/{sc}/", f"{sc}outline", f"/{sc}.png", slug.lower(), f"ipl/{sc}/")
    return any(marker in url for marker in markers)


def search_ancestors(levels: list[dict], slug: str, short_code: str) -> tuple:
    """(image, championships) from the nearest ancestor levels of a team link.

    The walk stops at the first level holding a nearby trophy string.
    """
    image, championships = "", ""
    for level in levels[:MAX_ANCESTOR_LEVELS]:
        if not image:
            image = next((src for src in level.get("images", []) if is_team_logo(src, slug, short_code)), "")
        for trophy in level.get("trophies", []):
            text = (trophy.get("text") or "").strip()
            if is_championship_text(text) and (trophy.get("distance") or 0) < TROPHY_MAX_DISTANCE:
                championships = text
                break
        if championships:
            break
    return image, championships


def build_team_profiles(raw_anchors: list[dict], extracted_at: str) -> list[TeamProfile]:
    """Raw anchor snapshots to profiles; duplicates by URL slug keep the first one seen."""
    unique: dict[str, dict[str, Any]] = {}
    for anchor in raw_anchors:
        slug = team_slug_from_url(anchor.get("href"))
        if not slug or slug == "teams" or len(slug) <= 2 or slug in unique:
            continue
        short_code = short_code_for_slug(slug)
        image, championships = search_ancestors(anchor.get("levels") or [], slug, short_code)
        unique[slug] = {
            "name": clean_team_name(anchor.get("text", ""), slug),
            "short_name": short_code,
            "link": anchor.get("href", ""),
            "image": image,
            "championships": championships,
            "total_titles": count_titles(championships),
        }

    return [
        TeamProfile(id=str(i), extracted=extracted_at, **info)
        for i, info in enumerate(unique.values(), start=1)
    ]


class TeamsScraper(PlaywrightScraper):
    name = "teams"

    def build_url(self, year: Optional[int] = None) -> str:
        # same listing for every season
        return f"{self.config.base_url}/teams"

    async def extract(self, page: Page, year: Optional[int], extracted_at: str) -> TeamsResult:
        url = self.build_url(year)
        await self.load(page, url, settle=True)
        try:
            raw = await page.evaluate(TEAM_ANCHORS_SCRIPT)
        except PlaywrightError as e:
            raise StructuralError(f"Team links could not be read: {e}", url=url, year=year) from e

        teams = build_team_profiles(raw or [], extracted_at)
        if not teams:
            logger.warning(str(UpstreamEmpty("No team links found", url=url)))
        else:
            self.logger.info(f"Processed {len(teams)} unique teams from {len(raw)} links")
        return TeamsResult(teams=teams, last_updated=extracted_at)
