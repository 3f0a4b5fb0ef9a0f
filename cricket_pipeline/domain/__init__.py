"""Validated IPL record types."""

from .models import MatchRecord, NewsArticle, StandingsRow, TeamProfile

__all__ = ["StandingsRow", "MatchRecord", "TeamProfile", "NewsArticle"]
