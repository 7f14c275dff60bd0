"""Rendering surface contract and the BeautifulSoup-backed adapters.

The crawler only talks to pages through :class:`Session`: navigate to a URL,
wait for a ready condition, query elements, and read their text or
attributes. Every one of those calls is a suspension point; everything the
crawler does with the returned strings is synchronous.

Two adapters live here:

- :class:`HttpSurface` fetches static HTML with ``requests`` and parses it
  with BeautifulSoup. It cannot run page scripts, so it suits sites (or
  page styles) that render listings server-side.
- :class:`StaticSurface` serves pre-captured HTML from memory. It backs the
  test suite and offline re-parsing of saved pages.

The browser adapter is in :mod:`partscrape.browser`.
"""

import asyncio
import random
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urldefrag

import requests  # type: ignore[import-untyped]
from bs4 import BeautifulSoup

from partscrape.config import (
    DELAY_MAX,
    DELAY_MIN,
    HEADERS,
    MAX_RETRIES,
    MAX_RETRY_BACKOFF,
    READY_TIMEOUT,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF_BASE,
    RETRY_STATUS_CODES,
)
from partscrape.logging_config import get_logger

__all__ = [
    "NavigationError",
    "ReadyTimeout",
    "Session",
    "Surface",
    "SoupSession",
    "HttpSurface",
    "StaticSurface",
]

logger = get_logger("surface")

Handle = Any


class NavigationError(Exception):
    """Raised when the surface fails to load a URL."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to load {url}: {reason}")
        self.url = url
        self.reason = reason


class ReadyTimeout(NavigationError):
    """Raised when a page's ready condition is not observed in time."""

    def __init__(self, url: str, selector: str, timeout: float):
        super().__init__(url, f"ready condition {selector!r} not met within {timeout:.0f}s")
        self.selector = selector
        self.timeout = timeout


class Session:
    """One isolated page context. Owned by exactly one caller at a time."""

    url: Optional[str] = None

    async def navigate(self, url: str) -> None:
        raise NotImplementedError

    async def wait_for(self, selector: str, timeout: float = READY_TIMEOUT) -> None:
        """Block until ``selector`` matches, or raise :class:`ReadyTimeout`."""
        raise NotImplementedError

    async def query_selector(self, selector: str, within: Optional[Handle] = None) -> Optional[Handle]:
        raise NotImplementedError

    async def query_selector_all(self, selector: str, within: Optional[Handle] = None) -> List[Handle]:
        raise NotImplementedError

    async def read_text(self, handle: Optional[Handle]) -> Optional[str]:
        raise NotImplementedError

    async def read_attribute(self, handle: Optional[Handle], name: str) -> Optional[str]:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class Surface:
    """Factory for sessions."""

    async def open_session(self) -> Session:
        raise NotImplementedError

    async def close(self) -> None:
        """Release everything the surface holds. Safe to call twice."""

    async def __aenter__(self) -> "Surface":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class SoupSession(Session):
    """A session over a parsed HTML document.

    ``fetch`` is a blocking callable returning the HTML for a URL; it runs in
    a worker thread so that sibling sessions keep making progress.
    """

    def __init__(self, fetch, on_close=None):
        self._fetch = fetch
        self._on_close = on_close
        self._soup: Optional[BeautifulSoup] = None
        self.url = None
        self.closed = False

    async def navigate(self, url: str) -> None:
        if self.closed:
            raise NavigationError(url, "session is closed")
        html = await asyncio.to_thread(self._fetch, url)
        self._soup = BeautifulSoup(html, "html.parser")
        self.url = url

    def _root(self, within: Optional[Handle]):
        if within is not None:
            return within
        if self._soup is None:
            raise NavigationError(self.url or "", "no page loaded")
        return self._soup

    async def wait_for(self, selector: str, timeout: float = READY_TIMEOUT) -> None:
        # Static documents never change after load, so one check is final
        if self._root(None).select_one(selector) is None:
            raise ReadyTimeout(self.url or "", selector, timeout)

    async def query_selector(self, selector: str, within: Optional[Handle] = None) -> Optional[Handle]:
        return self._root(within).select_one(selector)

    async def query_selector_all(self, selector: str, within: Optional[Handle] = None) -> List[Handle]:
        return list(self._root(within).select(selector))

    async def read_text(self, handle: Optional[Handle]) -> Optional[str]:
        if handle is None:
            return None
        return handle.get_text().strip()

    async def read_attribute(self, handle: Optional[Handle], name: str) -> Optional[str]:
        if handle is None:
            return None
        value = handle.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._soup = None
        if self._on_close is not None:
            self._on_close()


class HttpSurface(Surface):
    """Surface that fetches pages over HTTP with retry and polite delays.

    Each session owns its own ``requests.Session``.
    """

    def __init__(
        self,
        delay_min: float = DELAY_MIN,
        delay_max: float = DELAY_MAX,
        max_retries: int = MAX_RETRIES,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.delay_min = delay_min
        self.delay_max = delay_max
        self.max_retries = max_retries
        self.timeout = timeout

    def _create_http_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(HEADERS)
        session.headers.setdefault("Accept-Encoding", "gzip, deflate")
        return session

    def fetch_html(self, http: requests.Session, url: str) -> str:
        """GET ``url`` with exponential backoff on retryable failures."""
        for attempt in range(self.max_retries + 1):
            try:
                resp = http.get(url, timeout=self.timeout)
                if resp.status_code in RETRY_STATUS_CODES and attempt < self.max_retries:
                    backoff = min(RETRY_BACKOFF_BASE ** attempt, MAX_RETRY_BACKOFF) + random.uniform(0, 1)
                    logger.warning(
                        f"Received {resp.status_code} for {url}, backing off {backoff:.1f}s "
                        f"(attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(backoff)
                    continue
                resp.raise_for_status()
                time.sleep(random.uniform(self.delay_min, self.delay_max))
                return str(resp.text)

            except requests.exceptions.HTTPError as e:
                status = e.response.status_code if e.response is not None else "unknown"
                raise NavigationError(url, f"HTTP {status}") from e

            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                if attempt < self.max_retries:
                    backoff = min(RETRY_BACKOFF_BASE ** attempt, MAX_RETRY_BACKOFF) + random.uniform(0, 1)
                    logger.warning(
                        f"{type(e).__name__} for {url}, backing off {backoff:.1f}s "
                        f"(attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(backoff)
                    continue
                raise NavigationError(url, str(e)) from e

            except requests.exceptions.RequestException as e:
                raise NavigationError(url, str(e)) from e

        raise NavigationError(url, f"gave up after {self.max_retries} retries")

    async def open_session(self) -> Session:
        http = self._create_http_session()
        return SoupSession(lambda url: self.fetch_html(http, url), on_close=http.close)


class StaticSurface(Surface):
    """Serves HTML from an in-memory ``{url: html}`` mapping.

    A URL with a fragment falls back to its defragmented form. Unknown URLs
    raise :class:`NavigationError`, as do URLs listed in ``failing``.
    """

    session_class = SoupSession

    def __init__(self, pages: Dict[str, str], failing=()):
        self.pages = dict(pages)
        self.failing = set(failing)
        self.open_sessions = 0
        self.max_open_sessions = 0
        self.sessions_opened = 0
        self.visits: List[str] = []

    def fetch(self, url: str) -> str:
        self.visits.append(url)
        if url in self.failing:
            raise NavigationError(url, "simulated failure")
        if url in self.pages:
            return self.pages[url]
        base, _ = urldefrag(url)
        if base in self.pages:
            return self.pages[base]
        raise NavigationError(url, "HTTP 404")

    def _release(self) -> None:
        self.open_sessions -= 1

    async def open_session(self) -> Session:
        self.open_sessions += 1
        self.sessions_opened += 1
        self.max_open_sessions = max(self.max_open_sessions, self.open_sessions)
        return self.session_class(self.fetch, on_close=self._release)
