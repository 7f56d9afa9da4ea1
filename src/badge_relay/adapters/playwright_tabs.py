"""Playwright-driven browser tabs for the badge generator."""

import logging
from dataclasses import dataclass, field

from playwright.async_api import Browser, BrowserContext, Page, Playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from badge_relay.services.tabs import PopupBlockedError, TabHandle, TabOpener

_logger = logging.getLogger(__name__)


@dataclass
class PlaywrightTab(TabHandle):
    """A browser page the operator can close at any time."""

    page: Page

    def is_closed(self) -> bool:
        """Return True once the page is gone."""
        return self.page.is_closed()

    async def navigate(self, url: str) -> None:
        """Load `url`; a page closed mid-navigation is left for the caller to see."""
        try:
            await self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError:
            if self.page.is_closed():
                return
            raise

    async def bring_to_front(self) -> None:
        """Focus the page."""
        if not self.page.is_closed():
            await self.page.bring_to_front()

    async def close(self) -> None:
        """Close the page."""
        if not self.page.is_closed():
            await self.page.close()


@dataclass
class PlaywrightTabOpener(TabOpener):
    """Opens pages in a lazily launched Chromium window."""

    headless: bool = False
    context: BrowserContext | None = None
    _playwright: Playwright | None = field(default=None, init=False, repr=False)
    _browser: Browser | None = field(default=None, init=False, repr=False)

    async def open(self, url: str | None = None) -> PlaywrightTab:
        """Open a page, blank unless `url` is given.

        A page that opened but failed to load still counts as an opened tab.
        """
        try:
            context = await self._get_context()
            page = await context.new_page()
        except PlaywrightError as exc:
            raise PopupBlockedError("Browser refused to open a tab") from exc
        tab = PlaywrightTab(page=page)
        if url:
            try:
                await tab.navigate(url)
            except PlaywrightError as exc:
                _logger.warning("Opened tab failed to load %s: %s", url, exc)
        await tab.bring_to_front()
        return tab

    async def close(self) -> None:
        """Shut down the browser if this opener launched it."""
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
            self.context = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def _get_context(self) -> BrowserContext:
        if self.context is not None and (
            self._browser is None or self._browser.is_connected()
        ):
            return self.context
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        _logger.info("Launching dispatch browser: headless=%s", self.headless)
        self._browser = await self._playwright.chromium.launch(headless=self.headless)
        self.context = await self._browser.new_context(no_viewport=True)
        return self.context
