"""Browser-backed rendering surface using async Playwright.

One Chromium instance and one browser context are shared by the surface;
every session is its own page, so sessions never share navigation state.
"""

import asyncio
from typing import Any, Dict, List, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PWError,
    Page,
    Playwright,
    TimeoutError as PWTimeoutError,
    async_playwright,
)

from partscrape.config import HEADERS, NAVIGATION_TIMEOUT, READY_TIMEOUT
from partscrape.logging_config import get_logger
from partscrape.surface import Handle, NavigationError, ReadyTimeout, Session, Surface

__all__ = ["PlaywrightSession", "PlaywrightSurface"]

logger = get_logger("browser")

BLOCKED_RESOURCE_TYPES = {"font", "image", "stylesheet", "media"}


class PlaywrightSession(Session):
    def __init__(self, page: Page, navigation_timeout: float = NAVIGATION_TIMEOUT):
        self.page = page
        self.navigation_timeout = navigation_timeout
        self.url = None

    async def navigate(self, url: str) -> None:
        try:
            await self.page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.navigation_timeout * 1000,
            )
        except PWTimeoutError as e:
            raise NavigationError(url, f"timed out after {self.navigation_timeout:.0f}s") from e
        except PWError as e:
            raise NavigationError(url, e.message) from e
        self.url = url

    async def wait_for(self, selector: str, timeout: float = READY_TIMEOUT) -> None:
        try:
            await self.page.wait_for_selector(selector, state="attached", timeout=timeout * 1000)
        except PWTimeoutError as e:
            raise ReadyTimeout(self.url or self.page.url, selector, timeout) from e
        except PWError as e:
            raise NavigationError(self.url or self.page.url, e.message) from e

    def _read_failed(self, e: PWError) -> NavigationError:
        # e.g. "Execution context was destroyed" when the page re-renders mid-read
        return NavigationError(self.url or self.page.url, e.message)

    async def query_selector(self, selector: str, within: Optional[Handle] = None) -> Optional[Handle]:
        root = within if within is not None else self.page
        try:
            return await root.query_selector(selector)
        except PWError as e:
            raise self._read_failed(e) from e

    async def query_selector_all(self, selector: str, within: Optional[Handle] = None) -> List[Handle]:
        root = within if within is not None else self.page
        try:
            return await root.query_selector_all(selector)
        except PWError as e:
            raise self._read_failed(e) from e

    async def read_text(self, handle: Optional[Handle]) -> Optional[str]:
        if handle is None:
            return None
        try:
            text = await handle.text_content()
        except PWError as e:
            raise self._read_failed(e) from e
        return text.strip() if text is not None else None

    async def read_attribute(self, handle: Optional[Handle], name: str) -> Optional[str]:
        if handle is None:
            return None
        try:
            return await handle.get_attribute(name)
        except PWError as e:
            raise self._read_failed(e) from e

    async def close(self) -> None:
        if self.page.is_closed():
            return
        try:
            await self.page.close()
        except PWError as e:
            logger.debug(f"Ignoring error while closing page: {e.message}")


class PlaywrightSurface(Surface):
    """Launches Chromium lazily on the first session.

    Usage:
        async with PlaywrightSurface(headless=True) as surface:
            session = await surface.open_session()
    """

    def __init__(
        self,
        headless: bool = True,
        block_resources: bool = False,
        user_agent: Optional[str] = None,
        navigation_timeout: float = NAVIGATION_TIMEOUT,
    ):
        self.headless = headless
        self.block_resources = block_resources
        self.user_agent = user_agent
        self.navigation_timeout = navigation_timeout
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._launch_lock = asyncio.Lock()

    async def _ensure_context(self) -> BrowserContext:
        async with self._launch_lock:
            if self._context is None:
                try:
                    self._context = await self._launch()
                except BaseException:
                    # Stop a half-started driver so the next session starts clean
                    await self.close()
                    raise
        return self._context

    async def _launch(self) -> BrowserContext:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=["--disable-blink-features=AutomationControlled"],
        )
        context_args: Dict[str, Any] = {}
        if self.user_agent:
            context_args["user_agent"] = self.user_agent
        else:
            context_args["extra_http_headers"] = {
                k: v for k, v in HEADERS.items() if k.lower() != "user-agent"
            }
        context = await self._browser.new_context(**context_args)

        if self.block_resources:
            await context.route("**/*", self._route_request)

        logger.debug(f"Launched Chromium (headless={self.headless})")
        return context

    async def _route_request(self, route) -> None:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    async def open_session(self) -> Session:
        context = await self._ensure_context()
        page = await context.new_page()
        return PlaywrightSession(page, navigation_timeout=self.navigation_timeout)

    async def close(self) -> None:
        context, browser, driver = self._context, self._browser, self._playwright
        self._context = self._browser = self._playwright = None
        try:
            if context is not None:
                await context.close()
        finally:
            try:
                if browser is not None:
                    await browser.close()
            finally:
                if driver is not None:
                    await driver.stop()
