"""
Domain models for validated IPL data using Pydantic.

Every record is serialized with camelCase keys (``netRunRate``, ``shortName``)
because that is what the dashboard consumes.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

SUMMARY_MAX_LENGTH = 200


class IplRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class StandingsRow(IplRecord):
    position: int
    team: str = Field(min_length=2, max_length=5)
    played: int = Field(default=0, ge=0)
    won: int = Field(default=0, ge=0)
    lost: int = Field(default=0, ge=0)
    no_result: int = Field(default=0, ge=0)
    net_run_rate: float = 0.0
    runs_for: str = ""
    runs_against: str = ""
    points: int = Field(default=0, ge=0)
    recent_form: str = ""

    @field_validator("team", mode="before")
    @classmethod
    def _strip_team(cls, v):
        return v.strip() if isinstance(v, str) else v


class MatchRecord(IplRecord):
    id: int = Field(ge=1)
    description: str
    extracted: str


class TeamProfile(IplRecord):
    id: str
    name: str
    short_name: str
    link: str
    image: str = ""
    championships: str = ""
    total_titles: int = Field(default=0, ge=0)
    is_champion: bool = False
    extracted: str

    @model_validator(mode="after")
    def _derive_champion(self) -> "TeamProfile":
        self.is_champion = self.total_titles > 0
        return self


class NewsArticle(IplRecord):
    id: int
    title: str
    summary: str = ""
    link: str = ""
    image: str = ""
    published_date: str = ""
    category: str = "News"
    source: Optional[str] = None
    extracted: str

    @field_validator("title")
    @classmethod
    def _title_is_real(cls, v: str) -> str:
        v = v.strip()
        if len(v) <= 10:
            raise ValueError("title too short")
        if "undefined" in v:
            raise ValueError("title contains 'undefined'")
        return v

    @field_validator("summary")
    @classmethod
    def _truncate_summary(cls, v: str) -> str:
        return (v or "").strip()[:SUMMARY_MAX_LENGTH]


def is_valid_news_title(title: Optional[str]) -> bool:
    """Same rule as ``NewsArticle.title``, usable before building a record."""
    if not title:
        return False
    title = title.strip()
    return len(title) > 10 and "undefined" not in title
