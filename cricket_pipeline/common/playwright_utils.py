"""Browser Session Manager: headless Chromium sessions and fingerprinted pages.

Usage:
    manager = BrowserSessionManager(RandomIdentityProvider())
    async with manager.page() as page:
        await navigate(page, url, timeout_ms=10000)
        html = await page.content()

Every session spawns a browser subprocess. ``session()`` and ``page()`` are the
only supported ways to acquire one outside this module: both release on every
exit path. ``shared()`` keeps a single browser alive for a batch of scrapes.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, Sequence

from playwright.async_api import Browser, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .exceptions import ExtractionTimeout, LaunchError, NavigationTimeout
from .identity import IdentityProvider, RandomIdentityProvider

LAUNCH_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
]

# Runs before any page script; hides the usual automation markers
STEALTH_INIT_SCRIPT = """
(() => {
    try { delete Object.getPrototypeOf(navigator).webdriver; } catch (e) {}
    Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
    Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
    Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
    window.chrome = { runtime: {} };
})();
"""


@dataclass
class BrowserSession:
    playwright: Any = None
    browser: Optional[Browser] = None
    contexts: list[Any] = field(default_factory=list)
    # open shared() blocks and session() borrowers; closed when it drops to zero
    users: int = 0

    @property
    def is_open(self) -> bool:
        return self.browser is not None and self.browser.is_connected()


class BrowserSessionManager:
    """Creates sessions and pages; owns the optional shared session."""

    def __init__(
        self,
        identity_provider: Optional[IdentityProvider] = None,
        *,
        headless: bool = True,
        reuse: bool = True,
        default_timeout_ms: int = 10000,
        launch_args: Optional[Sequence[str]] = None,
    ):
        self.identity_provider = identity_provider or RandomIdentityProvider()
        self.headless = headless
        self.reuse = reuse
        self.default_timeout_ms = default_timeout_ms
        self.launch_args = list(launch_args if launch_args is not None else LAUNCH_ARGS)
        self.logger = logging.getLogger("browser_session")
        self._shared: Optional[BrowserSession] = None
        self._shared_lock = asyncio.Lock()

    async def create_session(self) -> BrowserSession:
        session = BrowserSession()
        try:
            session.playwright = await async_playwright().start()
            session.browser = await session.playwright.chromium.launch(
                headless=self.headless, args=self.launch_args
            )
        except Exception as e:
            await self.close_session(session)
            raise LaunchError(f"Headless browser could not start: {e}") from e
        self.logger.debug("Browser session started")
        return session

    async def create_page(self, session: BrowserSession) -> Page:
        if not session.is_open:
            raise LaunchError("Browser session is not open")
        identity = self.identity_provider.next_identity()
        try:
            context = await session.browser.new_context(
                user_agent=identity.user_agent,
                viewport=identity.viewport,
                locale=identity.locale,
                extra_http_headers=identity.headers,
            )
            session.contexts.append(context)
            await context.add_init_script(STEALTH_INIT_SCRIPT)
            page = await context.new_page()
        except PlaywrightError as e:
            raise LaunchError(f"Page context could not be created: {e}") from e
        page.set_default_timeout(self.default_timeout_ms)
        self.logger.debug(
            "New page UA=%s viewport=%sx%s lang=%s",
            identity.user_agent.split(" ")[0],
            identity.viewport.get("width"),
            identity.viewport.get("height"),
            identity.accept_language,
        )
        return page

    async def close_session(self, session: BrowserSession) -> None:
        """Release every resource of ``session``. Never raises."""
        for context in list(session.contexts):
            with contextlib.suppress(Exception):
                await context.close()
        session.contexts.clear()
        if session.browser is not None:
            with contextlib.suppress(Exception):
                await session.browser.close()
            session.browser = None
        if session.playwright is not None:
            with contextlib.suppress(Exception):
                await session.playwright.stop()
            session.playwright = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[BrowserSession]:
        """Yield the shared session when one is open, else a private one."""
        shared = self._shared
        if shared is not None and shared.is_open:
            shared.users += 1
            try:
                yield shared
            finally:
                await self._release_shared(shared)
            return
        session = await self.create_session()
        try:
            yield session
        finally:
            await self.close_session(session)

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        async with self.session() as session:
            page = await self.create_page(session)
            context = page.context
            try:
                yield page
            finally:
                with contextlib.suppress(Exception):
                    await context.close()
                if context in session.contexts:
                    session.contexts.remove(context)

    @asynccontextmanager
    async def shared(self) -> AsyncIterator[Optional[BrowserSession]]:
        """Keep one browser alive for the duration of the block (if reuse is on).

        Overlapping blocks (a forced refresh during the preload) share the
        same browser; it is closed when the last block or page using it exits.
        """
        if not self.reuse:
            yield None
            return
        async with self._shared_lock:
            if self._shared is None or not self._shared.is_open:
                self._shared = await self.create_session()
            session = self._shared
            session.users += 1
        try:
            yield session
        finally:
            await self._release_shared(session)

    async def _release_shared(self, session: BrowserSession) -> None:
        session.users -= 1
        if session.users > 0:
            return
        if self._shared is session:
            self._shared = None
        await self.close_session(session)
        self.logger.debug("Shared browser session closed")


async def navigate(page: Page, url: str, *, timeout_ms: int, wait_until: str = "domcontentloaded"):
    """page.goto with the taxonomy's timeout error."""
    try:
        return await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise NavigationTimeout(f"Timed out after {timeout_ms} ms loading {url}", url=url) from e
    except PlaywrightError as e:
        raise NavigationTimeout(f"Navigation to {url} failed: {e}", url=url) from e


async def wait_for_content(page: Page, selector: str, *, timeout_ms: int) -> None:
    try:
        await page.wait_for_selector(selector, timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise ExtractionTimeout(
            f"'{selector}' did not appear within {timeout_ms} ms", url=page.url
        ) from e


__all__ = [
    "BrowserSession",
    "BrowserSessionManager",
    "navigate",
    "wait_for_content",
    "STEALTH_INIT_SCRIPT",
]
