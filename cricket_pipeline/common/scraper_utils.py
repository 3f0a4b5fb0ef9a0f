"""Shared pure scraper helper functions (team codes, match text heuristics).

These utilities are used by several extractors and by the schedule view:
- Team slug / abbreviation lookup
- Match status classification from result text
- Match description parsing (team codes, scores, overs, winner)
- Line heuristics for the matches fallback

All functions are side-effect free to ease testing.
"""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Optional

# Static slug -> abbreviation table for the ten current franchises
TEAM_ABBREVIATIONS: dict[str, str] = {
    "chennai-super-kings": "CSK",
    "delhi-capitals": "DC",
    "gujarat-titans": "GT",
    "kolkata-knight-riders": "KKR",
    "lucknow-super-giants": "LSG",
    "mumbai-indians": "MI",
    "punjab-kings": "PBKS",
    "rajasthan-royals": "RR",
    "royal-challengers-bengaluru": "RCB",
    "sunrisers-hyderabad": "SRH",
}

# Display names as they appear in result text, including former franchise names
TEAM_NAME_CODES: dict[str, str] = {
    "mumbai indians": "MI",
    "chennai super kings": "CSK",
    "royal challengers bengaluru": "RCB",
    "royal challengers bangalore": "RCB",
    "kolkata knight riders": "KKR",
    "rajasthan royals": "RR",
    "delhi capitals": "DC",
    "delhi daredevils": "DD",
    "punjab kings": "PBKS",
    "kings xi punjab": "PBKS",
    "sunrisers hyderabad": "SRH",
    "gujarat titans": "GT",
    "lucknow super giants": "LSG",
    "deccan chargers": "DCH",
}

TEAM_SLUG_PATTERN = re.compile(r"/teams/([a-z\-]+)", re.IGNORECASE)
CHAMPIONSHIP_PATTERN = re.compile(r"^\d{4}(\s*\|\s*\d{4})*$")

_WINNER_PATTERN = re.compile(r"^(.+?)\s+won\s+by", re.IGNORECASE)
_INNINGS_PATTERN = re.compile(r"\b([A-Z]{2,5})\s+(\d+(?:/\d+)?)\s*\(\s*([0-9.]+)\s*(?i:OV)\s*\)")
_BARE_CODE_PATTERN = re.compile(r"\b([A-Z]{2,5})\b(?!\s*OV)")
_ABANDONED_PATTERN = re.compile(r"abandoned|no result", re.IGNORECASE)
_WON_BY_PATTERN = re.compile(r"won by", re.IGNORECASE)
_CODE_PAIR_PATTERN = re.compile(r"[A-Z]{2,4}.*[A-Z]{2,4}")

MATCH_COMPLETED = "completed"
MATCH_UPCOMING = "upcoming"
MATCH_ABANDONED = "abandoned"


def team_slug_from_url(url: Optional[str]) -> Optional[str]:
    """Lower-cased ``/teams/<slug>`` segment of a URL, or None."""
    m = TEAM_SLUG_PATTERN.search(url or "")
    return m.group(1).lower() if m else None


def short_code_for_slug(slug: str) -> str:
    """Canonical abbreviation; unknown slugs fall back to the bare upper-cased slug."""
    return TEAM_ABBREVIATIONS.get(slug.lower()) or slug.upper().replace("-", "")


def title_from_slug(slug: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-") if word)


def is_championship_text(text: Optional[str]) -> bool:
    return bool(text) and bool(CHAMPIONSHIP_PATTERN.match(text.strip()))


def count_titles(championships: str) -> int:
    return len([y for y in championships.split("|") if y.strip()]) if championships else 0


def classify_match_status(description: Optional[str]) -> str:
    """completed / abandoned / upcoming from the raw result text.

    Abandoned is checked first: a washed-out game can still mention a
    previous "won by" line in the same container.
    """
    text = description or ""
    if _ABANDONED_PATTERN.search(text):
        return MATCH_ABANDONED
    if _WON_BY_PATTERN.search(text):
        return MATCH_COMPLETED
    return MATCH_UPCOMING


def looks_like_match_line(line: str) -> bool:
    """Fallback heuristic for page text lines that describe a fixture."""
    return "vs" in line or "V/S" in line or bool(_CODE_PAIR_PATTERN.search(line))


@dataclass
class TeamInnings:
    code: str
    score: str = ""
    overs: str = ""


@dataclass
class MatchSummary:
    status: str
    team1: Optional[TeamInnings] = None
    team2: Optional[TeamInnings] = None
    winner: str = ""
    result: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_match_description(description: Optional[str]) -> MatchSummary:
    """Pull team codes, scores and the winner out of a result line.

    Example: "Mumbai Indians won by 6 wickets MI 180/4 (19.2 OV) CSK 178/8 (20 OV)"
    gives a completed match, MI 180/4 in 19.2 overs vs CSK, winner MI.
    """
    text = (description or "").strip()
    status = classify_match_status(text)

    if status == MATCH_ABANDONED:
        codes = _BARE_CODE_PATTERN.findall(text)
        summary = MatchSummary(status=status, result="No Result" if re.search(r"no result", text, re.I) else "Abandoned")
        if len(codes) >= 2:
            summary.team1, summary.team2 = TeamInnings(codes[0]), TeamInnings(codes[1])
        return summary

    innings: list[TeamInnings] = []
    seen: set[str] = set()
    for code, score, overs in _INNINGS_PATTERN.findall(text):
        # the winner's line is sometimes repeated
        if code in seen:
            continue
        seen.add(code)
        innings.append(TeamInnings(code=code, score=score, overs=overs))

    summary = MatchSummary(status=status)
    if len(innings) >= 2:
        summary.team1, summary.team2 = innings[0], innings[1]

    winner_match = _WINNER_PATTERN.search(text)
    if status == MATCH_COMPLETED and winner_match and len(innings) >= 2:
        winner_name = winner_match.group(1).strip().lower()
        winner = TEAM_NAME_CODES.get(winner_name, "")
        if not winner:
            for team in innings:
                if team.code.lower() in winner_name:
                    winner = team.code
                    break
        summary.winner = winner
        summary.result = winner
    return summary


__all__ = [
    "TEAM_ABBREVIATIONS",
    "TEAM_NAME_CODES",
    "CHAMPIONSHIP_PATTERN",
    "MATCH_COMPLETED",
    "MATCH_UPCOMING",
    "MATCH_ABANDONED",
    "team_slug_from_url",
    "short_code_for_slug",
    "title_from_slug",
    "is_championship_text",
    "count_titles",
    "classify_match_status",
    "looks_like_match_line",
    "parse_match_description",
    "MatchSummary",
    "TeamInnings",
]
