"""Browser identities (user agent, viewport, headers) handed to new page contexts.

The pools are fixed; which entry a page gets is decided by an
``IdentityProvider`` so tests can pin a deterministic identity.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

# Shared defaults
DEFAULT_UAS: list[str] = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/16.6 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/120.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/119.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
]
DEFAULT_VIEWPORTS: list[dict[str, int]] = [
    {"width": 1920, "height": 1080},
    {"width": 1366, "height": 768},
    {"width": 1440, "height": 900},
    {"width": 1536, "height": 864},
    {"width": 1280, "height": 720},
]
ACCEPT_LANGUAGES: list[str] = [
    "en-US,en;q=0.9",
    "en-US,en;q=0.8,es;q=0.7",
    "en-GB,en;q=0.9",
    "en-US,en;q=0.9,fr;q=0.8",
    "en-US,en;q=0.7,de;q=0.6",
]
ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8"


def build_headers(accept_language: str) -> dict[str, str]:
    """Browser-like extra headers sent with every request of a page context."""
    return {
        "Accept": ACCEPT_HEADER,
        "Accept-Language": accept_language,
        "Accept-Encoding": "gzip, deflate, br",
        "DNT": "1",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
    }


@dataclass(frozen=True)
class BrowserIdentity:
    user_agent: str
    viewport: dict[str, int]
    accept_language: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def locale(self) -> str:
        return self.accept_language.split(",")[0]


class IdentityProvider(Protocol):
    def next_identity(self) -> BrowserIdentity: ...


class RandomIdentityProvider:
    """Picks user agent, viewport and Accept-Language independently at random."""

    def __init__(
        self,
        user_agents: Optional[Sequence[str]] = None,
        viewports: Optional[Sequence[dict[str, int]]] = None,
        languages: Optional[Sequence[str]] = None,
        *,
        seed: Optional[int] = None,
    ):
        self.user_agents = list(user_agents or DEFAULT_UAS)
        self.viewports = list(viewports or DEFAULT_VIEWPORTS)
        self.languages = list(languages or ACCEPT_LANGUAGES)
        self._rng = random.Random(seed)

    def next_identity(self) -> BrowserIdentity:
        language = self._rng.choice(self.languages)
        return BrowserIdentity(
            user_agent=self._rng.choice(self.user_agents),
            viewport=dict(self._rng.choice(self.viewports)),
            accept_language=language,
            headers=build_headers(language),
        )


class FixedIdentityProvider:
    """Always hands out the same identity."""

    def __init__(self, identity: Optional[BrowserIdentity] = None):
        self.identity = identity or BrowserIdentity(
            user_agent=DEFAULT_UAS[0],
            viewport=dict(DEFAULT_VIEWPORTS[0]),
            accept_language=ACCEPT_LANGUAGES[0],
            headers=build_headers(ACCEPT_LANGUAGES[0]),
        )

    def next_identity(self) -> BrowserIdentity:
        return self.identity


__all__ = [
    "BrowserIdentity",
    "IdentityProvider",
    "RandomIdentityProvider",
    "FixedIdentityProvider",
    "build_headers",
    "DEFAULT_UAS",
    "DEFAULT_VIEWPORTS",
    "ACCEPT_LANGUAGES",
]
