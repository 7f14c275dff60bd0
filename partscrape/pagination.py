"""Pagination: page counts and listing page addressing."""

from typing import List, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from partscrape.config import DEFAULT_SELECTORS, PAGE_URL_STYLE, PAGE_URL_STYLES, READY_TIMEOUT, SiteSelectors
from partscrape.html_utils import extract_page_numbers
from partscrape.logging_config import get_logger
from partscrape.surface import Surface

__all__ = [
    "page_url",
    "page_count",
    "listing_urls",
]

logger = get_logger("pagination")


def page_url(category_url: str, page: int, style: str = PAGE_URL_STYLE) -> str:
    """Address listing page ``page`` (1-based) of a category.

    Styles:
        hash:  https://host/products/cpu/#page=3
        query: https://host/products/cpu/?page=3 (other parameters kept)
        path:  https://host/products/cpu/page/3/
    """
    if page < 1:
        raise ValueError(f"Page numbers start at 1, got {page}")
    if style not in PAGE_URL_STYLES:
        raise ValueError(f"Unknown page style '{style}', expected one of {PAGE_URL_STYLES}")

    parsed = urlparse(category_url)
    if style == "hash":
        return urlunparse(parsed._replace(fragment=f"page={page}"))

    if style == "query":
        params = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k != "page"]
        params.append(("page", str(page)))
        return urlunparse(parsed._replace(query=urlencode(params), fragment=""))

    path = parsed.path if parsed.path.endswith("/") else parsed.path + "/"
    return urlunparse(parsed._replace(path=f"{path}page/{page}/", fragment=""))


async def page_count(
    surface: Surface,
    category_url: str,
    selectors: SiteSelectors = DEFAULT_SELECTORS,
    style: str = PAGE_URL_STYLE,
    ready_timeout: float = READY_TIMEOUT,
) -> int:
    """Number of listing pages a category has (always at least 1).

    A category without a pagination control has exactly one page.

    Raises:
        NavigationError: If the first listing page cannot be loaded
    """
    session = await surface.open_session()
    try:
        await session.navigate(page_url(category_url, 1, style))
        if selectors.listing_ready:
            await session.wait_for(selectors.listing_ready, timeout=ready_timeout)
        numbers = await extract_page_numbers(session, selectors)
    finally:
        await session.close()
    return max(numbers) if numbers else 1


def listing_urls(
    category_url: str,
    total_pages: int,
    max_pages: Optional[int] = None,
    style: str = PAGE_URL_STYLE,
) -> List[str]:
    """URLs of the listing pages to crawl, honoring an explicit page cap."""
    pages = total_pages
    if max_pages is not None:
        if max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {max_pages}")
        if max_pages < total_pages:
            logger.info(f"  Limiting to the first {max_pages} of {total_pages} pages")
            pages = max_pages
    return [page_url(category_url, k, style) for k in range(1, pages + 1)]
