"""
Points table (standings) extractor for iplt20.com.

The column set and order differ between seasons, so the header row is mapped
to indices on every scrape instead of assuming fixed positions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from playwright.async_api import Page
from pydantic import ValidationError

from ...common.exceptions import StructuralError, ValidationRejected
from ...common.parsing import element_text, parse_float_or, parse_int_or, soup_from_html
from ...domain.models import StandingsRow
from .base import PlaywrightScraper

COLUMN_TOKENS: tuple = ("POS", "TEAM", "P", "W", "L", "NR", "NRR", "FOR", "AGAINST", "PTS", "RECENT FORM")
REQUIRED_COLUMNS: tuple = ("TEAM", "P")
MAX_TEAMS = 10

logger = logging.getLogger("scraper.points_table")


@dataclass
class StandingsResult:
    year: int
    teams: list[StandingsRow]
    column_map: dict[str, int]
    last_updated: str
    skipped_rows: int = 0
    rejected_rows: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "teams": [row.to_payload() for row in self.teams],
            "totalTeams": len(self.teams),
            "tableStructure": dict(self.column_map),
            "lastUpdated": self.last_updated,
        }


def create_column_map(header: list[str]) -> dict[str, int]:
    """Index of every known header token; -1 when the season's table lacks it."""
    normalized = [" ".join((cell or "").split()).upper() for cell in header]
    return {token: normalized.index(token) if token in normalized else -1 for token in COLUMN_TOKENS}


def extract_table_rows(html: str) -> list[list[str]]:
    soup = soup_from_html(html)
    rows = []
    for tr in soup.select("table tr"):
        cells = [element_text(cell) for cell in tr.find_all(["th", "td"])]
        if any(cells):
            rows.append(cells)
    return rows


def _cell(row: list[str], index: int) -> str:
    return row[index].strip() if 0 <= index < len(row) else ""


def build_standings_row(row: list[str], column_map: dict[str, int], row_index: int) -> StandingsRow:
    """One data row to a StandingsRow; ``ValidationRejected`` when invariants fail."""
    team = _cell(row, column_map["TEAM"])
    try:
        return StandingsRow(
            position=parse_int_or(_cell(row, column_map["POS"]), row_index),
            team=team,
            played=parse_int_or(_cell(row, column_map["P"])),
            won=parse_int_or(_cell(row, column_map["W"])),
            lost=parse_int_or(_cell(row, column_map["L"])),
            no_result=parse_int_or(_cell(row, column_map["NR"])),
            net_run_rate=parse_float_or(_cell(row, column_map["NRR"])),
            runs_for=_cell(row, column_map["FOR"]),
            runs_against=_cell(row, column_map["AGAINST"]),
            points=parse_int_or(_cell(row, column_map["PTS"])),
            recent_form=_cell(row, column_map["RECENT FORM"]),
        )
    except ValidationError as e:
        raise ValidationRejected(f"Row {row_index} ({team!r}) rejected: {e.error_count()} error(s)") from e


def parse_points_table(html: str, year: int, extracted_at: str) -> StandingsResult:
    rows = extract_table_rows(html)
    if len(rows) < 2:
        raise StructuralError(f"Points table for {year} has no data rows", year=year)

    column_map = create_column_map(rows[0])
    missing = [col for col in REQUIRED_COLUMNS if column_map[col] < 0]
    if missing:
        raise StructuralError(f"Points table for {year} lacks required columns: {', '.join(missing)}", year=year)

    min_cells = max(column_map.values()) + 1
    result = StandingsResult(year=year, teams=[], column_map=column_map, last_updated=extracted_at)

    for row_index, row in enumerate(rows[1:], start=1):
        if len(row) < min_cells:
            result.skipped_rows += 1
            continue
        try:
            result.teams.append(build_standings_row(row, column_map, row_index))
        except ValidationRejected as e:
            logger.warning(str(e))
            result.rejected_rows.append(str(e))
            continue
        if len(result.teams) >= MAX_TEAMS:
            break

    logger.info(
        f"Parsed {len(result.teams)} standings rows for {year} "
        f"({result.skipped_rows} short, {len(result.rejected_rows)} rejected)"
    )
    return result


class PointsTableScraper(PlaywrightScraper):
    name = "points_table"

    def build_url(self, year: Optional[int] = None) -> str:
        return f"{self.config.base_url}/points-table/men/{year}"

    async def extract(self, page: Page, year: Optional[int], extracted_at: str) -> StandingsResult:
        url = self.build_url(year)
        await self.load(page, url, wait_selector="table")
        html = await page.content()
        try:
            return parse_points_table(html, year, extracted_at)
        except StructuralError as e:
            e.url = url
            raise
